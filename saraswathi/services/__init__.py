"""Business services: OCR orchestration, image variants, AI analysis, auth."""
