from fakes import intestazioni


def _payload(**override):
    payload = {
        "destinazione": "Pizzeria Centro",
        "righe": [{"prodotto": "Mozzarella", "quantita": 3, "unita_misura": "KG"}],
    }
    payload.update(override)
    return payload


def test_operatore_trasferisce_dal_proprio_negozio(client, store_movimenti, store_fatture):
    response = client.post("/api/movimentazioni", json=_payload(origine="Pizzeria Centro"), headers=intestazioni())

    assert response.status_code == 201
    assert store_movimenti.dati[0]["origine"] == "Store X"
    assert response.json()["fattura"]["creata"] is True
    assert len(store_fatture.dati) == 2


def test_quantita_non_positiva(client, store_movimenti):
    payload = _payload(righe=[{"prodotto": "Olio", "quantita": 0}])
    assert client.post("/api/movimentazioni", json=payload, headers=intestazioni()).status_code == 422
    assert store_movimenti.dati == []


def test_destinazione_uguale_all_origine(client):
    response = client.post("/api/movimentazioni", json=_payload(destinazione="Store X"), headers=intestazioni())
    assert response.status_code == 400


def test_elenco_per_negozio(client):
    client.post("/api/movimentazioni", json=_payload(), headers=intestazioni())
    admin = intestazioni("admin@pizzeria.it", "admin", "")
    client.post(
        "/api/movimentazioni",
        json=_payload(origine="Pizzeria Centro", destinazione="Negozio Nord"),
        headers=admin,
    )

    assert len(client.get("/api/movimentazioni", headers=intestazioni()).json()) == 1
    assert len(client.get("/api/movimentazioni", headers=admin).json()) == 2
