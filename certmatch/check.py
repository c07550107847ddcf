import OpenSSL.crypto
import argparse
import certmatch
import certmatch.certs
import datetime
import logging
import sys

def check(hostname, paths, filetype=certmatch.certs.FILETYPE_PEM):
    certmatch.clear()
    any_match = False

    for path in paths:
        try:
            cert = certmatch.load_certificate(path, filetype=filetype)
        except (OSError, OpenSSL.crypto.Error, ValueError) as err:
            print('Warning: cannot load certificate %r (%s)' % (path, err), file=sys.stderr)
            continue

        ok = certmatch.certs.matches(cert, hostname)
        any_match = any_match or ok
        print('%s: %s' % (path, 'match' if ok else 'no match'))

    good, best = certmatch.find_cert(hostname)
    if best is not None:
        print('Best certificate for %s: %s (expires %s)' % (hostname, best.path, best.expiration.date()), file=sys.stderr)
        if not good:
            print('Warning: certificate for %s expires within %d days' % (hostname, certmatch.expiration_margin.days), file=sys.stderr)

    return any_match

def main(argv=None):
    parser = argparse.ArgumentParser(prog='python -m certmatch.check',
                                     description='Check whether certificates are valid for a hostname (RFC 2818).')
    parser.add_argument('hostname')
    parser.add_argument('certs', nargs='+', metavar='CERT')
    parser.add_argument('--der', action='store_true', help='certificates are DER encoded')
    parser.add_argument('--min-days', type=int, default=certmatch.expiration_margin.days)
    parser.add_argument('--verbose', '-v', action='store_true')
    ns = parser.parse_args(argv)

    if ns.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        certmatch._check_hostname(ns.hostname)
    except ValueError as err:
        parser.error(str(err))

    certmatch.expiration_margin = datetime.timedelta(days=ns.min_days)
    filetype = certmatch.certs.FILETYPE_ASN1 if ns.der else certmatch.certs.FILETYPE_PEM
    return 0 if check(ns.hostname, ns.certs, filetype=filetype) else 1

if __name__ == '__main__':
    sys.exit(main())
