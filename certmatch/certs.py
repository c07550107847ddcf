import OpenSSL.crypto
import collections
import datetime
import ipaddress
import logging

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID
from pyasn1.codec.der.decoder import decode
from pyasn1.codec.der.encoder import encode
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc5280

from .hostname import match_identity, _san_entry

logger = logging.getLogger(__name__)

FILETYPE_PEM = OpenSSL.crypto.FILETYPE_PEM
FILETYPE_ASN1 = OpenSSL.crypto.FILETYPE_ASN1

# same labels as ssl.SSLSocket.getpeercert()
_GENERAL_NAME_KINDS = {
    'dNSName': 'DNS',
    'rfc822Name': 'email',
    'iPAddress': 'IP Address',
    'uniformResourceIdentifier': 'URI',
    'directoryName': 'DirName',
    'registeredID': 'Registered ID',
    'otherName': 'othername',
    'x400Address': 'X400Name',
    'ediPartyName': 'EdiPartyName',
}

# an entry that could not be decoded on its own
INVALID = ('invalid', None)

class _RawGeneralNames(univ.SequenceOf):
    componentType = univ.Any()

def _san_extension_value(der):
    """Return the encoded value of the first subjectAltName extension of a
    DER certificate, or None. Other extensions are not decoded."""
    try:
        cert, _ = decode(der, asn1Spec=rfc5280.Certificate())
    except PyAsn1Error as err:
        logger.debug('cannot walk certificate extensions: %s', err)
        return None

    for ext in cert['tbsCertificate']['extensions']:
        if ext['extnID'] == rfc5280.id_ce_subjectAltName:
            return ext['extnValue'].asOctets()
    return None

def _general_name_entry(name):
    choice = name.getName()
    component = name.getComponent()
    kind = _GENERAL_NAME_KINDS[choice]

    if choice in ('dNSName', 'rfc822Name', 'uniformResourceIdentifier'):
        return kind, component.asOctets().decode('ascii')
    if choice == 'iPAddress':
        octets = component.asOctets()
        if len(octets) in (4, 16):
            return kind, str(ipaddress.ip_address(octets))
        return kind, octets.hex()
    if choice == 'registeredID':
        return kind, str(component)
    return kind, encode(component).hex()

def _decode_entry(data):
    try:
        name, rest = decode(data, asn1Spec=rfc5280.GeneralName())
        if rest:
            return INVALID
        return _general_name_entry(name)
    except (PyAsn1Error, UnicodeDecodeError, ValueError) as err:
        logger.debug('skipping undecodable subjectAltName entry: %s', err)
        return INVALID

def general_names(data):
    """Decode an encoded GeneralNames value into ``(kind, value)`` pairs.

    Entries are decoded one at a time, an entry that cannot be decoded
    becomes ``INVALID`` and the rest are kept. Returns None when the list
    itself cannot be decoded.
    """
    try:
        raw, rest = decode(data, asn1Spec=_RawGeneralNames())
    except PyAsn1Error as err:
        logger.debug('cannot decode subjectAltName extension: %s', err)
        return None

    if rest:
        logger.debug('trailing data after subjectAltName extension')
        return None

    return [ _decode_entry(item.asOctets()) for item in raw ]

def subject_alt_names(cert):
    """Return subjectAltName entries of a ``cryptography`` certificate as
    ``(kind, value)`` pairs in certificate order.

    Only the subjectAltName extension is decoded. A missing or undecodable
    extension gives an empty list.
    """
    value = _san_extension_value(cert.public_bytes(Encoding.DER))
    if value is None:
        return []

    names = general_names(value)
    if names is None:
        return []
    return names

def common_name(cert):
    try:
        attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    except ValueError as err:
        logger.debug('cannot decode subject: %s', err)
        return None

    if not attrs:
        return None

    value = attrs[0].value
    if isinstance(value, bytes):
        return None
    return value

class _CertificateSource:
    def __init__(self):
        self._san = None

    def _load(self):
        raise NotImplementedError

    def _certificate(self):
        if not hasattr(self, '_cert'):
            self._cert = self._load()
        return self._cert

    def san_entry(self, index):
        if self._san is None:
            cert = self._certificate()
            self._san = subject_alt_names(cert) if cert is not None else []
        return _san_entry(self._san, index)

    def common_name(self):
        cert = self._certificate()
        if cert is None:
            return None
        return common_name(cert)

class EncodedCertificate(_CertificateSource):
    """Identity source over an encoded certificate (DER unless told otherwise)."""

    def __init__(self, data, filetype=FILETYPE_ASN1):
        _CertificateSource.__init__(self)
        self.data = data
        self.filetype = filetype

    def _load(self):
        try:
            return OpenSSL.crypto.load_certificate(self.filetype, self.data).to_cryptography()
        except (OpenSSL.crypto.Error, ValueError) as err:
            logger.debug('cannot parse certificate (%d bytes): %s', len(self.data), err)
            return None

class CertificateHandle(_CertificateSource):
    """Identity source over a pyOpenSSL ``X509`` or a ``cryptography`` certificate."""

    def __init__(self, cert):
        _CertificateSource.__init__(self)
        if isinstance(cert, OpenSSL.crypto.X509):
            self._handle = cert
        elif isinstance(cert, x509.Certificate):
            self._handle = None
            self._cert = cert
        else:
            raise TypeError('expected X509 or cryptography certificate, got %r' % type(cert).__name__)

    def _load(self):
        return self._handle.to_cryptography()

def verify_from_encoded(data, hostname, filetype=FILETYPE_ASN1):
    return match_identity(EncodedCertificate(data, filetype), hostname)

def verify_from_handle(cert, hostname):
    return match_identity(CertificateHandle(cert), hostname)

class Certificate(collections.namedtuple('Certificate', 'path cn san expiration')):
    __slots__ = ()

    def san_entry(self, index):
        return _san_entry(self.san, index)

    def common_name(self):
        return self.cn

def matches(cert, hostname):
    return match_identity(cert, hostname)

def _parse_asn1_time(value):
    # YYYYMMDDhhmmssZ
    return datetime.datetime.strptime(value.decode()[:14], '%Y%m%d%H%M%S')

def load_cert(filename, filetype=FILETYPE_PEM):
    with open(filename, 'rb') as f:
        st_cert = f.read()

    handle = OpenSSL.crypto.load_certificate(filetype, st_cert)
    cert = handle.to_cryptography()
    expiration = _parse_asn1_time(handle.get_notAfter())

    return Certificate(filename, common_name(cert), tuple(subject_alt_names(cert)), expiration)
