"""
WSGI entry point — used by gunicorn in Procfile.
"""
import os

from app import create_app

app = create_app()

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 8080)))
