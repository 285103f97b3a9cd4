from .orchestrator.main import cli

cli()
