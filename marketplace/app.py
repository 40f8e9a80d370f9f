"""Instance applicative unique, construite par la factory."""
from marketplace.app_setup.factory import create_app

app = create_app()
