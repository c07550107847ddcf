import datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def _now():
    return datetime.datetime.now(datetime.timezone.utc)


def build_cert(cn=None, san=None, days=365, extra_cns=(), ca=False):
    """Self-signed certificate with the given names.

    ``san`` is a list of ``x509.GeneralName`` or ``None`` for no
    subjectAltName extension at all.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    attrs = []
    if cn is not None:
        attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, cn))
    for extra in extra_cns:
        attrs.append(x509.NameAttribute(NameOID.COMMON_NAME, extra))
    name = x509.Name(attrs)

    builder = (x509.CertificateBuilder()
               .subject_name(name)
               .issuer_name(name)
               .public_key(key.public_key())
               .serial_number(x509.random_serial_number())
               .not_valid_before(_now() - datetime.timedelta(days=1))
               .not_valid_after(_now() + datetime.timedelta(days=days)))
    if san is not None:
        builder = builder.add_extension(x509.SubjectAlternativeName(san), critical=False)
    if ca:
        builder = builder.add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=False)
    return builder.sign(key, hashes.SHA256())


def dns(*names):
    return [x509.DNSName(name) for name in names]


def der(cert):
    return cert.public_bytes(serialization.Encoding.DER)


def pem(cert):
    return cert.public_bytes(serialization.Encoding.PEM)


def patch(data, old, new):
    """Replace the single occurrence of ``old`` in DER ``data``."""
    assert data.count(old) == 1
    return data.replace(old, new)
