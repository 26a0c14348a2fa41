import pytest

from tradesim.postgres.scram import Scram

USERNAME = "user"
# Published SCRAM-SHA-256 test vector phrase.
SAMPLE_PHRASE = "pencil"
CLIENT_NONCE = "rOprNGfwEbeRWgbNEkqO"
SERVER_FIRST_MSG = (
    "r=rOprNGfwEbeRWgbNEkqO%hvYDpWUa2RaTCAfuxFIlj)hNlF$k0,"
    "s=W22ZaJ0SNY7soEsUEjb6gQ==,i=4096"
)
EXPECTED_CLIENT_FINAL_MSG = (
    "c=biws,r=rOprNGfwEbeRWgbNEkqO%hvYDpWUa2RaTCAfuxFIlj)hNlF$k0,"
    "p=dHzbZapWIk4jUhN+Ute9ytag9zjfMHgsqmmiz7AndVQ="
)
SERVER_FINAL_MSG = "v=6rriTRBi23WpRR/wtup+mMhUZUn/dB5nLTJRsjl95G4="


def test_full_exchange():
    scram = Scram()
    assert scram.client_first_message(USERNAME, CLIENT_NONCE) == (
        "n,,n=user,r=rOprNGfwEbeRWgbNEkqO"
    )
    scram.resolve_server_first_message(SERVER_FIRST_MSG)
    assert scram.client_final_message(SAMPLE_PHRASE) == EXPECTED_CLIENT_FINAL_MSG
    assert scram.verify_server_final_message(SERVER_FINAL_MSG) is True


def test_wrong_server_final_rejected():
    scram = Scram()
    scram.client_first_message(USERNAME, CLIENT_NONCE)
    scram.resolve_server_first_message(SERVER_FIRST_MSG)
    scram.client_final_message(SAMPLE_PHRASE)
    assert scram.verify_server_final_message("v=AAAA") is False


def test_verify_before_final_is_false():
    scram = Scram()
    assert scram.verify_server_final_message(SERVER_FINAL_MSG) is False


def test_nonce_mismatch():
    scram = Scram()
    scram.client_first_message(USERNAME, "othernonce")
    with pytest.raises(ValueError, match="nonce"):
        scram.resolve_server_first_message(SERVER_FIRST_MSG)


def test_too_few_params():
    scram = Scram()
    scram.client_first_message(USERNAME, CLIENT_NONCE)
    with pytest.raises(ValueError, match="params"):
        scram.resolve_server_first_message("r=rOprNGfwEbeRWgbNEkqOxyz,s=W22ZaJ0SNY7soEsUEjb6gQ==")


def test_final_before_server_first():
    scram = Scram()
    scram.client_first_message(USERNAME, CLIENT_NONCE)
    with pytest.raises(RuntimeError):
        scram.client_final_message(SAMPLE_PHRASE)