import collections
import logging
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# kinds of SanEntry
DNS = 'DNS'
OTHER = 'OTHER'
END = 'END'

SanEntry = collections.namedtuple('SanEntry', 'kind value')

END_OF_LIST = SanEntry(END, None)

def hostname_compare(certname, hostname):
    """Compare one name from a certificate with the hostname.

    This is the basic wildcard matching described in RFC 2818: a name of
    the form ``*.domain.tld`` stands for exactly the first label of the
    hostname. Everything else is compared exactly, without case folding.
    Names containing a NUL character never match, not even themselves.

    >>> hostname_compare('*.example.com', 'www.example.com')
    True
    >>> hostname_compare('*.example.com', 'a.b.example.com')
    False
    >>> hostname_compare('*.example.com', 'example.com')
    False
    """
    if not certname or not hostname:
        return False

    if '\0' in certname or '\0' in hostname:
        return False

    if len(certname) > 2 and certname.startswith('*.'):
        index = hostname.find('.')
        if index == -1:
            # hostname is only a local part
            return False

        return certname[1:] == hostname[index:]

    return certname == hostname

def match_identity(source, hostname):
    """Decide whether a certificate is valid for hostname.

    ``source`` provides ``san_entry(index)`` and ``common_name()``.
    The common name is consulted only if the certificate carries no
    subjectAltName of type dNSName at all. Never raises for certificate
    content, every failure is a mismatch.
    """
    found_dnsname = False

    index = 0
    while True:
        entry = source.san_entry(index)
        if entry.kind == END:
            break

        if entry.kind == DNS:
            found_dnsname = True
            if hostname_compare(entry.value, hostname):
                return True

        index += 1

    if found_dnsname:
        return False

    common_name = source.common_name()
    if common_name is None:
        logger.debug('no subjectAltName DNS entries and no common name, %r rejected', hostname)
        return False

    return hostname_compare(common_name, hostname)

class CertificateIdentity:
    """Identity claims held in memory.

    ``san`` is a sequence of ``(kind, value)`` pairs as returned by
    ``ssl.SSLSocket.getpeercert()``, e.g. ``('DNS', 'example.com')`` or
    ``('IP Address', '192.0.2.1')``.
    """

    def __init__(self, san=(), cn=None):
        self.san = tuple(san) # type: Tuple[Tuple[str, str], ...]
        self.cn = cn # type: Optional[str]

    @classmethod
    def from_peercert(cls, cert):
        common_name = None
        for fields in cert.get('subject', ()):
            for key, value in fields:
                if key == 'commonName' and common_name is None:
                    common_name = value

        return cls(cert.get('subjectAltName', ()), common_name)

    def san_entry(self, index):
        return _san_entry(self.san, index)

    def common_name(self):
        return self.cn

    def __repr__(self):
        return 'CertificateIdentity(san=%r, cn=%r)' % (self.san, self.cn)

def _san_entry(san, index):
    # type: (Sequence[Tuple[str, str]], int) -> SanEntry
    if index >= len(san):
        return END_OF_LIST

    kind, value = san[index]
    if kind == 'DNS':
        return SanEntry(DNS, value)
    return SanEntry(OTHER, value)
