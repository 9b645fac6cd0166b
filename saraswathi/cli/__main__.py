"""Allow ``python -m saraswathi.cli <command>`` execution."""

from saraswathi.cli.manage import main

main()
