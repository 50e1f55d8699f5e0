from catalog_export.cli import app

app()
