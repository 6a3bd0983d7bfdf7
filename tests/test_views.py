from conftest import display, login

from clinica.backend import db
from clinica.backend.exceptions import DataUnavailable
from clinica.backend.models.app import RoleType, User
from clinica.backend.routes import views


def _boom():
    raise DataUnavailable("appointments could not be read")


def test_protected_views_redirect_to_login(client, seed):
    for path in ["/", "/pacientes", "/medicos", "/turnos", "/dashboard/medico", "/dashboard/paciente", "/usuarios"]:
        resp = client.get(path)
        assert resp.status_code == 302, path
        assert "/login" in resp.headers["Location"]


def test_login_redirects_by_role(client, seed):
    assert login(client, "admin").headers["Location"] == "/"
    client.get("/logout")
    assert login(client, "house").headers["Location"] == "/dashboard/medico"
    client.get("/logout")
    assert login(client, "ana@example.com").headers["Location"] == "/dashboard/paciente"


def test_bad_credentials_rerender_login(client, seed):
    resp = login(client, "admin", "wrong")
    assert resp.status_code == 401
    assert "Usuario o contraseña incorrectos" in resp.get_data(as_text=True)


def test_login_page_redirects_authenticated_user(client, seed):
    login(client, "ana")
    resp = client.get("/login")
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/dashboard/paciente"


def test_admin_dashboard(client, seed):
    login(client, "admin")
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Dashboard - Clínica Salud Integral" in body
    assert 'id="metric-turnos">5<' in body
    assert 'id="metric-pacientes">2<' in body
    assert 'id="metric-medicos">2<' in body
    # overview keeps past and undated appointments
    assert "Fecha no disp." in body
    assert display(-3) in body
    assert "Gregory House" in body
    assert "Luis Gómez" in body


def test_admin_dashboard_degrades_on_data_error(client, seed, monkeypatch):
    monkeypatch.setattr(views, "fetch_all_appointments", _boom)
    login(client, "admin")
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Error al obtener datos de la base de datos" in body
    assert 'id="metric-turnos">0<' in body


def test_non_admin_cannot_open_admin_dashboard(client, seed):
    login(client, "house")
    assert client.get("/").status_code == 403


def test_doctor_dashboard_lists_own_upcoming(client, seed):
    login(client, "house")
    resp = client.get("/dashboard/medico")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert 'id="metric-turnos">2<' in body
    # invalid start time still shows, ordered before the later appointment
    assert body.index(display(2)) < body.index(display(5))
    assert display(-3) not in body
    assert display(7) not in body


def test_doctor_without_profile_is_signed_out(client, seed):
    user = User.query.filter_by(username="house").first()
    user.doctor_profile.user_id = None
    db.session.commit()

    login(client, "house")
    resp = client.get("/dashboard/medico")
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/login"
    # session was dropped, so the login page renders instead of bouncing back
    assert client.get("/login").status_code == 200


def test_patient_dashboard_lists_own_upcoming(client, seed):
    login(client, "ana")
    body = client.get("/dashboard/paciente").get_data(as_text=True)
    assert 'id="metric-turnos">2<' in body
    assert body.index(display(5)) < body.index(display(7))
    assert display(-3) not in body
    assert display(2) not in body


def test_patient_dashboard_degrades_on_data_error(client, seed, monkeypatch):
    monkeypatch.setattr(views, "fetch_all_appointments", _boom)
    login(client, "ana")
    resp = client.get("/dashboard/paciente")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Error al obtener datos" in body
    assert 'id="metric-turnos">0<' in body


def test_wrong_role_dashboards_redirect(client, seed):
    login(client, "ana")
    resp = client.get("/dashboard/medico")
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/login"
    client.get("/logout")

    login(client, "house")
    resp = client.get("/dashboard/paciente")
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/"


def test_users_page_is_admin_only(client, seed):
    login(client, "ana")
    resp = client.get("/usuarios")
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/"
    client.get("/logout")

    login(client, "admin")
    body = client.get("/usuarios").get_data(as_text=True)
    assert "house@example.com" in body


def test_management_pages_render(client, seed):
    login(client, "house")
    for path, title in [("/pacientes", "Gestión de Pacientes"), ("/medicos", "Gestión de Médicos"), ("/turnos", "Gestión de Turnos")]:
        resp = client.get(path)
        assert resp.status_code == 200
        assert title in resp.get_data(as_text=True)


def test_registration_page_prefills_google_fields(client):
    resp = client.get("/registro/paciente?googleEmail=eva@example.com&googleFirstName=Eva&googleLastName=Ruiz")
    body = resp.get_data(as_text=True)
    assert resp.status_code == 200
    assert 'value="eva@example.com"' in body
    assert 'value="Eva"' in body
    assert 'value="Ruiz"' in body


def test_registration_creates_patient(client, app):
    resp = client.post(
        "/registro/paciente",
        data={
            "username": "eva",
            "email": "Eva@Example.com",
            "password": "secret",
            "first_name": "Eva",
            "last_name": "Ruiz",
        },
    )
    assert resp.status_code == 302
    user = User.query.filter_by(username="eva").first()
    assert user.role == RoleType.PATIENT
    assert user.email == "eva@example.com"
    assert user.patient_profile.name == "Eva Ruiz"

    resp = client.post("/registro/paciente", data={"username": "eva", "email": "x@example.com", "password": "p"})
    assert resp.status_code == 400
    assert "already in use" in resp.get_data(as_text=True)


def test_api_status(client):
    resp = client.get("/api/status")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["status"] == "success"
    assert data["database"] == "sqlite"
    assert data["endpoints"]["turnos"] == "/api/turnos"
    assert "timestamp" in data
