"""Manuscript ingestion and enrichment pipeline."""

from saraswathi.pipeline.orchestrator import ManuscriptPipeline, build_enrichment_update

__all__ = ["ManuscriptPipeline", "build_enrichment_update"]
