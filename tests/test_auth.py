from app.auth.utenti import DirectoryUtenti
from fakes import intestazioni


def test_login_e_verifica(client):
    response = client.post("/api/auth/login", json={"email": "OP@pizzeria.it", "password": "segreta"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == {"email": "op@pizzeria.it", "nome": "Operatore", "ruolo": "operatore", "punto_vendita": "Store X"}

    verifica = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {body['token']}"})
    assert verifica.status_code == 200
    assert verifica.json()["user"]["punto_vendita"] == "Store X"


def test_login_password_errata(client):
    response = client.post("/api/auth/login", json={"email": "op@pizzeria.it", "password": "sbagliata"})
    assert response.status_code == 401


def test_token_non_valido(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
    assert response.status_code == 401


def test_info_e_health(client):
    assert client.get("/health").json()["status"] == "ok"
    info = client.get("/api/info", headers=intestazioni()).json()
    assert info["user"]["email"] == "op@pizzeria.it"


def test_utenti_da_json_ruolo_sconosciuto():
    utenti = DirectoryUtenti.from_json(
        '[{"email": "a@b.it", "password_hash": "x", "ruolo": "capo"}, {"email": "", "ruolo": "admin"}]'
    )
    assert len(utenti) == 1
    assert utenti.trova("A@B.IT").ruolo == "operatore"
    assert utenti.autentica("a@b.it", "qualsiasi") is None
