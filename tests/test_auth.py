from medibook.models import Patient, User


def test_register_creates_patient_and_returns_token(client):
    resp = client.post('/api/auth/register', json={
        'email': 'Carol@Medibook.test', 'password': 'pw12345', 'confirm_password': 'pw12345',
        'name': 'Carol', 'age': '29', 'phone': '555-0199',
    })

    assert resp.status_code == 201
    body = resp.get_json()
    assert body['data']['role'] == 'patient'
    assert body['access_token']
    assert body['redirect_to'] == '/api/patient/dashboard'

    user = User.query.filter_by(email='carol@medibook.test').one()
    assert Patient.query.filter_by(user_id=user.id).one().age == 29


def test_register_validation(client, patient):
    resp = client.post('/api/auth/register', json={
        'email': 'dave@medibook.test', 'password': 'one', 'confirm_password': 'two',
    })
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Passwords do not match.'

    resp = client.post('/api/auth/register', json={'email': 'alice@medibook.test', 'password': 'x'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Email already exists.'


def test_login_and_me(client, doctor):
    resp = client.post('/api/auth/login', json={'email': 'smith@medibook.test', 'password': 'secret123'})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['redirect_to'] == '/api/doctor/dashboard'

    resp = client.get('/api/auth/me', headers={'Authorization': f"Bearer {body['access_token']}"})
    assert resp.status_code == 200
    assert resp.get_json()['data']['profile']['specialty'] == 'Cardiology'


def test_login_rejects_bad_credentials(client, doctor):
    resp = client.post('/api/auth/login', json={'email': 'smith@medibook.test', 'password': 'wrong'})
    assert resp.status_code == 401

    resp = client.post('/api/auth/login', json={'email': 'smith@medibook.test'})
    assert resp.status_code == 400


def test_missing_and_invalid_tokens(client):
    resp = client.get('/api/patient/dashboard')
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'Authentication required'}

    resp = client.get('/api/patient/dashboard', headers={'Authorization': 'Bearer not-a-jwt'})
    assert resp.status_code == 401


def test_role_mismatch_is_forbidden(client, patient_headers, doctor_headers):
    assert client.get('/api/doctor/dashboard', headers=patient_headers).status_code == 403
    assert client.get('/api/patient/dashboard', headers=doctor_headers).status_code == 403
    assert client.get('/api/patient/dashboard', headers=patient_headers).status_code == 200


def test_health(client):
    resp = client.get('/health')

    assert resp.status_code == 200


def test_readiness_reports_database_and_policy(client):
    resp = client.get('/health/ready')

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['database'] == 'connected'
    assert body['availability_fail_open'] is True
