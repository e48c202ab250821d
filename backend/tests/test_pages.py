"""
Testes das páginas HTML (Jinja2) e do redirecionamento para o login.
"""

from app.core.config import settings
from app.core.security import encode_session
from app.core.exceptions import StoreError
from app.core.session import AUTH_FLAG_KEY, AUTH_TIMESTAMP_KEY
from app.services.event_form_service import submission_guard
from app.services.event_service import event_service

NEW_EVENT_FORM = {
    "supplier": "Auto Peças Silva",
    "vehiclePlate": "abc1234",
    "amount": "450,75",
    "eventDate": "2024-03-10",
    "reason": "Troca de óleo",
    "paymentDate": "2024-03-20",
    "status": "",
}


def page_login(client) -> None:
    response = client.post("/login", data={"password": "GuardAdm"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/?aviso=login"


class TestLogin:

    def test_protected_page_redirects_to_login(self, client):
        response = client.get("/eventos", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_expired_session_redirects_with_notice(self, client):
        stale = encode_session({AUTH_FLAG_KEY: "true", AUTH_TIMESTAMP_KEY: "1000"})
        client.cookies.set(settings.session_cookie_name, stale)

        response = client.get("/", follow_redirects=False)

        assert response.headers["location"] == "/login?expirado=1"
        assert "Sua sessão expirou" in client.get(response.headers["location"]).text

    def test_wrong_password_renders_error(self, client):
        response = client.post("/login", data={"password": "errada"})

        assert response.status_code == 401
        assert "A senha fornecida está incorreta" in response.text

    def test_login_then_dashboard(self, client):
        page_login(client)

        response = client.get("/?aviso=login")

        assert response.status_code == 200
        assert "Painel" in response.text

    def test_logout(self, client):
        page_login(client)
        client.post("/logout", follow_redirects=False)

        assert client.get("/", follow_redirects=False).status_code == 303


class TestPages:

    def test_unknown_route_shows_not_found_page(self, client):
        response = client.get("/rota-que-nao-existe")

        assert response.status_code == 404
        assert "Página não encontrada" in response.text

    def test_new_event_flow(self, client):
        page_login(client)
        assert "Novo Evento" in client.get("/novo-evento").text

        response = client.post(
            "/novo-evento",
            data=NEW_EVENT_FORM,
            files=[("invoice", ("nota.pdf", b"%PDF-1.4", "application/pdf"))],
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/eventos?aviso=salvo"
        listing = client.get("/eventos").text
        assert "ABC1234" in listing
        assert "Pago" in listing

    def test_invalid_form_is_rendered_again(self, client):
        page_login(client)

        response = client.post("/novo-evento", data={**NEW_EVENT_FORM, "reason": ""})

        assert response.status_code == 422
        assert "Motivo do evento é obrigatório" in response.text

    def test_edit_page_of_unknown_event(self, client):
        page_login(client)
        response = client.get("/editar-evento/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404

    def test_csv_download(self, client):
        page_login(client)
        client.post("/novo-evento", data=NEW_EVENT_FORM, follow_redirects=False)

        response = client.get("/eventos/exportar.csv")

        assert response.status_code == 200
        assert len(response.text.splitlines()) == 2

    def test_duplicate_submission_renders_conflict(self, client):
        page_login(client)

        with submission_guard("form-duplicado"):
            response = client.post(
                "/novo-evento",
                data={**NEW_EVENT_FORM, "submissionKey": "form-duplicado"},
                follow_redirects=False,
            )

        assert response.status_code == 409
        assert "Este formulário já está sendo enviado" in response.text

    def test_dashboard_store_failure(self, client, monkeypatch):
        page_login(client)

        async def failing_list_all(db):
            raise StoreError("connection reset")

        monkeypatch.setattr(event_service, "list_all", failing_list_all)

        response = client.get("/")

        assert response.status_code == 502
        assert "Erro ao carregar dados" in response.text
        assert "Painel" in response.text
