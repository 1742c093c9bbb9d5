from tests.conftest import PASSWORD


def test_register_returns_user_without_password(app):
    client = app.test_client()

    response = client.post('/api/register', json={
        'username': "driver@example.com", 'password': PASSWORD, 'email': "driver@example.com"
    })

    assert response.status_code == 201
    user = response.get_json()
    assert user['username'] == "driver@example.com"
    assert user['premiumUser'] is False
    assert user['trialStartDate']
    assert 'password' not in user

    # Registration signs the user in
    assert client.get('/api/user').get_json()['id'] == user['id']


def test_duplicate_username_conflicts(app, login):
    login("alice")

    response = app.test_client().post('/api/register', json={'username': "alice", 'password': "x"})

    assert response.status_code == 409


def test_register_requires_credentials(app):
    response = app.test_client().post('/api/register', json={'username': "bob"})

    assert response.status_code == 400


def test_login_sets_session(app, login):
    login("alice")
    client = app.test_client()

    response = client.post('/api/login', json={'username': "alice", 'password': PASSWORD})

    assert response.status_code == 200
    body = response.get_json()
    assert body['user']['username'] == "alice"
    assert body['accessToken']
    assert client.get('/api/user').status_code == 200


def test_bearer_token_is_accepted(app, login):
    login("alice")
    token = app.test_client().post(
        '/api/login', json={'username': "alice", 'password': PASSWORD}
    ).get_json()['accessToken']

    response = app.test_client().get('/api/user', headers={'Authorization': f"Bearer {token}"})

    assert response.status_code == 200
    assert response.get_json()['username'] == "alice"


def test_wrong_password_is_rejected(app, login):
    login("alice")

    response = app.test_client().post('/api/login', json={'username': "alice", 'password': "nope"})

    assert response.status_code == 401
    assert response.data == b''


def test_unknown_user_is_rejected(app):
    response = app.test_client().post('/api/login', json={'username': "ghost", 'password': "nope"})
    assert response.status_code == 401


def test_logout_revokes_session(app, login):
    login("alice")
    client = app.test_client()
    token = client.post('/api/login', json={'username': "alice", 'password': PASSWORD}).get_json()['accessToken']

    response = client.post('/api/logout')
    assert response.status_code == 200

    # Cookie is cleared and the token itself no longer works
    assert client.get('/api/user').status_code == 401
    reused = app.test_client().get('/api/user', headers={'Authorization': f"Bearer {token}"})
    assert reused.status_code == 401


def test_garbage_token_is_401(app):
    response = app.test_client().get('/api/user', headers={'Authorization': "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.data == b''
