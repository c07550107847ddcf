import pytest
from cryptography.hazmat.primitives import serialization

import certmatch


@pytest.fixture
def write_cert(tmp_path):
    def write(name, cert, encoding=serialization.Encoding.PEM):
        path = tmp_path / name
        path.write_bytes(cert.public_bytes(encoding))
        return str(path)
    return write


@pytest.fixture(autouse=True)
def clean_store():
    margin = certmatch.expiration_margin
    certmatch.clear()
    yield
    certmatch.clear()
    certmatch.expiration_margin = margin
