"""
Minimal HTTPS test server backed by the development certificate.
"""
from flask import Flask
import logging
from typing import Optional

from .security.certificate_loader import CertificateLoader


RESPONSE_BODY = "Secure server is up and running"


class DevHTTPSServer:
    """Flask application served over TLS 1.3 with the loaded certificate."""

    def __init__(self, config, loader: Optional[CertificateLoader] = None):
        """Initialize the test server."""
        self.app = Flask(__name__)
        self.config = config
        self.loader = loader or CertificateLoader(config)
        self.logger = logging.getLogger(__name__)

        self._setup_routes()

    def _setup_routes(self):
        """Set up the single route."""

        @self.app.route('/', methods=['GET'])
        def index():
            return RESPONSE_BODY, 200, {'Content-Type': 'text/plain; charset=utf-8'}

        @self.app.after_request
        def add_security_headers(response):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
            response.headers['X-Content-Type-Options'] = 'nosniff'
            return response

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """Load the certificate and serve until interrupted."""
        host = host or self.config.server_host
        port = port or self.config.server_port

        self.loader.load()
        ssl_context = self.loader.create_server_context()

        self.logger.info(f"Listening on: https://{host}:{port}")
        self.app.run(host=host, port=port, ssl_context=ssl_context, debug=False)
