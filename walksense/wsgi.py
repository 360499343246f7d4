# walksense/wsgi.py
from walksense.app_factory import create_app

app = create_app()
