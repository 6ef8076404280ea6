from lab_etl.main import cli

cli()
