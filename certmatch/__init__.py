from . import certs
from .hostname import hostname_compare, match_identity, CertificateIdentity, SanEntry, DNS, OTHER, END
from .certs import verify_from_encoded, verify_from_handle, EncodedCertificate, CertificateHandle, Certificate, load_cert, matches
import OpenSSL.crypto
import glob
import datetime
import sys
from typing import List

__version__ = '0.1.0'

_certificates = [] # type: List[certs.Certificate]

expiration_margin = datetime.timedelta(days=30)

def load_certificate(path, filetype=certs.FILETYPE_PEM):
    crt = certs.load_cert(path, filetype=filetype)
    _certificates.append(crt)
    return crt

def find_certificates(pattern):
    paths = glob.glob(pattern)
    if not paths:
        print('Warning: no certificates found (%r)' % pattern, file=sys.stderr)

    loaded = []
    for path in sorted(paths):
        try:
            loaded.append(load_certificate(path))
        except (OSError, OpenSSL.crypto.Error, ValueError) as err:
            print('Warning: cannot load certificate %r (%s)' % (path, err), file=sys.stderr)
    return loaded

def clear():
    del _certificates[:]

def _check_hostname(hostname):
    if not hostname or '/' in hostname or any( ch.isspace() for ch in hostname ):
        raise ValueError('bad hostname %r' % hostname)

def find_cert(hostname):
    _check_hostname(hostname)
    matching = [ cert for cert in _certificates
                 if certs.matches(cert, hostname) ]

    matching.sort(key=lambda cert: cert.expiration)
    if not matching:
        return False, None

    cert = matching[-1]
    good = is_expiration_ok(cert)
    return good, cert

def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)

def is_expiration_ok(cert, now=None):
    if now is None:
        now = _utcnow()
    return (cert.expiration - now) > expiration_margin

