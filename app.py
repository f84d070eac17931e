"""
Newsletter API Server
=====================

Run with:
    python app.py

Settings come from the environment or a .env file (see newsletter_api/core/config.py).
"""

import logging

from newsletter_api import create_app

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger('newsletter_api.server')

app = create_app()


if __name__ == '__main__':
    port = app.config['PORT']
    base_url = f"http://localhost:{port}"

    logger.info("Server started successfully!")
    logger.info(f"Port: {port}")
    logger.info(f"Newsletter API: {base_url}/api/newsletter/subscribe")
    logger.info(f"Health check: {base_url}/api/health")
    logger.info(f"Subscribers list: {base_url}/api/admin/subscribers")

    app.run(host='0.0.0.0', port=port)
