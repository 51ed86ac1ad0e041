"""PEM certificate bundle validation.

A trust bundle is accepted only when every PEM block in it is an X.509
certificate. Text before a block is skipped, which lets distribution CA
bundles keep their per-certificate comments.
"""

import re

from cryptography import x509

from proxyconfig_controller.exceptions import InvalidTrustBundleError

_CERTIFICATE_TYPE = "CERTIFICATE"

_BEGIN_MARKER = re.compile(rb"^-----BEGIN [^\r\n]*?-----", re.MULTILINE)
_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<type>[^\r\n]*?)-----\r?\n.*?-----END (?P=type)-----",
    re.DOTALL,
)


def validate_pem_bundle(data: bytes) -> list[x509.Certificate]:
    """Parse ``data`` as a sequence of PEM encoded certificates.

    Every BEGIN line starts a block that must be closed, be of type
    CERTIFICATE and parse as X.509.

    Args:
        data: Raw bundle bytes.

    Returns:
        The parsed certificates, in bundle order.

    Raises:
        InvalidTrustBundleError: If the bundle is empty, contains no PEM
            block, has trailing non-PEM data, or contains a block that is
            not a valid certificate.

    """
    if not data:
        raise InvalidTrustBundleError("trust bundle is empty")

    certificates: list[x509.Certificate] = []
    end = 0
    for marker in _BEGIN_MARKER.finditer(data):
        block = _PEM_BLOCK.match(data, marker.start())
        # An unterminated block, or one that swallowed the next BEGIN line
        if block is None or marker.start() < end:
            raise InvalidTrustBundleError("failed to parse certificate PEM")
        block_type = block.group("type").decode("ascii", errors="replace")
        if block_type != _CERTIFICATE_TYPE:
            raise InvalidTrustBundleError(f"invalid certificate PEM, must be of type {_CERTIFICATE_TYPE!r}")
        try:
            certificates.append(x509.load_pem_x509_certificate(block.group(0)))
        except ValueError as e:
            raise InvalidTrustBundleError(f"failed to parse certificate: {e}") from e
        end = block.end()

    # Anything after the last block that is not whitespace is an unparsable fragment
    if not certificates or data[end:].strip():
        raise InvalidTrustBundleError("failed to parse certificate PEM")

    return certificates
