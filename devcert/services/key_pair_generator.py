"""
Key pair generation and self-signing for development TLS certificates.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from ..models.certificate import CertificateArtifacts
from ..security.errors import CertificateCreationError, KeyEncodingError, KeyGenerationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyPairGenerator:
    """Produces a fresh P-256 key and a self-signed server certificate over it."""

    CURVE = ec.SECP256R1

    def __init__(self, validity_days: int = 365, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the generator.

        Args:
            validity_days: Lifetime of the certificate starting at generation time
            clock: Callable returning the current (timezone aware) time
        """
        self.validity_days = validity_days
        self.clock = clock or utc_now
        self.logger = logging.getLogger(__name__)

    def generate(self, organization_names: Sequence[str], dns_names: Sequence[str],
                 now: Optional[datetime] = None) -> CertificateArtifacts:
        """
        Generate a key pair and a self-signed certificate.

        Args:
            organization_names: Subject organization names, in order
            dns_names: DNS names for the subject alternative name extension
            now: Start of the validity window, read from the clock if not given

        Returns:
            CertificateArtifacts with PEM encoded certificate and private key

        Raises:
            KeyGenerationError: If the key pair cannot be generated
            CertificateCreationError: If the certificate cannot be built or signed
            KeyEncodingError: If the private key cannot be serialized
        """
        try:
            private_key = ec.generate_private_key(self.CURVE())
        except Exception as e:
            raise KeyGenerationError(f"failed to generate ECDSA private key: {e}") from e

        certificate = self._build_certificate(
            private_key, organization_names, dns_names, now or self.clock()
        )

        try:
            key_pem = private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption()
            )
        except (ValueError, TypeError) as e:
            raise KeyEncodingError(f"failed to encode private key: {e}") from e

        cert_pem = certificate.public_bytes(serialization.Encoding.PEM)

        self.logger.info(
            f"Generated self-signed certificate for {list(dns_names)} "
            f"valid until {certificate.not_valid_after_utc.isoformat()}"
        )
        return CertificateArtifacts(cert_pem=cert_pem, key_pem=key_pem)

    def _build_certificate(self, private_key: ec.EllipticCurvePrivateKey,
                           organization_names: Sequence[str],
                           dns_names: Sequence[str],
                           not_before: datetime) -> x509.Certificate:
        subject = issuer = x509.Name([
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, org) for org in organization_names
        ])

        not_after = not_before + timedelta(days=self.validity_days)

        try:
            builder = x509.CertificateBuilder().subject_name(
                subject
            ).issuer_name(
                issuer
            ).public_key(
                private_key.public_key()
            ).serial_number(
                x509.random_serial_number()
            ).not_valid_before(
                not_before
            ).not_valid_after(
                not_after
            ).add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=True,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            ).add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
                critical=False,
            ).add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )

            if dns_names:
                builder = builder.add_extension(
                    x509.SubjectAlternativeName([x509.DNSName(name) for name in dns_names]),
                    critical=False,
                )
            else:
                self.logger.warning("No DNS names given, certificate has no subject alternative names")

            return builder.sign(private_key, hashes.SHA256())
        except (ValueError, TypeError) as e:
            raise CertificateCreationError(f"failed to create certificate: {e}") from e
