import json, os, sys, tempfile
import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Ensure the package is in path
sys.path.insert(0, ROOT)

# Change to project directory
os.chdir(ROOT)

# Point storage and key paths at a scratch directory before config is imported
_TMP = tempfile.mkdtemp(prefix="intake-tests-")
os.environ["MANDATE_DB_PATH"] = os.path.join(_TMP, "mandates.db")
os.environ["PUBLIC_KEY_PATH"] = os.path.join(_TMP, "public-key.asc")
os.environ["SUBMIT_RPM"] = "1000"
os.environ["CONTACT_RPM"] = "1000"
os.environ["MAIL_HOST"] = ""
os.environ["LOG_JSON"] = "false"

from nacl.public import PrivateKey, SealedBox

from mandate_intake.encryption import ENVELOPE_LABEL
from mandate_intake.keys import PRIVATE_KEY_LABEL, dearmor, generate_key_pair, load_public_key

# Generate a test-only recipient key pair once
PUBLIC_KEY_TEXT, PRIVATE_KEY_TEXT = generate_key_pair("test-recipient-01")
PRIVATE_KEY_PATH = os.path.join(_TMP, "private-key.asc")
with open(os.environ["PUBLIC_KEY_PATH"], "w", encoding="utf-8") as f:
    f.write(PUBLIC_KEY_TEXT)
with open(PRIVATE_KEY_PATH, "w", encoding="utf-8") as f:
    f.write(PRIVATE_KEY_TEXT)

# Initialize app at module load time
from mandate_intake import main
from mandate_intake.db import reset_db

main._startup()


def open_envelope(envelope: str) -> dict:
    """Test-side decryption with the private key; the package itself cannot do this."""
    _, sk_raw = dearmor(PRIVATE_KEY_TEXT, PRIVATE_KEY_LABEL)
    _, sealed = dearmor(envelope, ENVELOPE_LABEL)
    return json.loads(SealedBox(PrivateKey(sk_raw)).decrypt(sealed).decode("utf-8"))


class FakeMailer:
    """Records messages instead of talking SMTP."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def send(self, msg) -> bool:
        self.sent.append(msg)
        return self.ok


# Reset database and rate limits before each test for isolation
@pytest.fixture(autouse=True)
def _reset_state():
    reset_db()
    main.submit_limiter.reset()
    main.contact_limiter.reset()
    yield


@pytest.fixture
def mailer(monkeypatch):
    fake = FakeMailer()
    monkeypatch.setattr(main, "MAILER", fake)
    return fake


@pytest.fixture
def failing_mailer(monkeypatch):
    fake = FakeMailer(ok=False)
    monkeypatch.setattr(main, "MAILER", fake)
    return fake


@pytest.fixture
def recipient_key():
    return load_public_key(PUBLIC_KEY_TEXT)
