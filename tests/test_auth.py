from cityreport.core.security import COOKIE_NAME, hash_password, make_token
from cityreport.models.user import User
from tests.factories import make_admin


def test_login_sets_cookie_and_returns_token(client, db):
    admin = make_admin(db, email='clerk@city.gov', password='s3cret!')
    resp = client.post('/admin/login', json={'email': 'Clerk@City.gov', 'password': 's3cret!'})
    assert resp.status_code == 200
    data = resp.json()
    assert data['token_type'] == 'bearer'
    assert resp.cookies.get(COOKIE_NAME) == data['access_token']

    # the cookie alone is enough for admin pages
    assert client.get('/admin', headers={}).status_code == 200
    db.expire_all()
    assert db.get(User, admin.id).last_login is not None


def test_login_rejections(client, db):
    make_admin(db, email='clerk@city.gov', password='s3cret!')
    make_admin(db, email='gone@city.gov', password='s3cret!', is_active=False)
    plain = User(email='citizen@example.com', hashed_password=hash_password('pw'))
    db.add(plain)
    db.commit()

    resp = client.post('/admin/login', json={'email': 'clerk@city.gov', 'password': 'wrong'})
    assert resp.status_code == 401
    assert resp.json()['detail'] == 'Invalid login credentials'

    resp = client.post('/admin/login', json={'email': 'nobody@city.gov', 'password': 'x'})
    assert resp.status_code == 401

    resp = client.post('/admin/login', json={'email': 'gone@city.gov', 'password': 's3cret!'})
    assert resp.status_code == 403
    assert resp.json()['detail'] == 'Your account has been deactivated. Please contact your administrator.'

    resp = client.post('/admin/login', json={'email': 'citizen@example.com', 'password': 'pw'})
    assert resp.status_code == 403
    assert resp.json()['detail'] == 'Access denied. Admin privileges required.'


def test_unauthenticated_api_call_gets_401(client):
    resp = client.get('/admin/issues')
    assert resp.status_code == 401
    body = resp.json()
    assert body['reason'] == 'not_authenticated'
    assert body['login_url'] == '/admin/login'


def test_unauthenticated_page_redirects_to_login(client):
    resp = client.get('/admin', headers={'Accept': 'text/html'}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers['location'] == '/admin/login'


def test_deactivated_admin_token_is_refused(client, db):
    admin = make_admin(db, is_active=False)
    resp = client.get('/admin/issues', headers={'Authorization': f"Bearer {make_token(admin.id, 'admin')}"})
    assert resp.status_code == 401
    assert resp.json()['reason'] == 'inactive'


def test_bad_token_is_refused(client):
    resp = client.get('/admin', headers={'Authorization': 'Bearer not-a-jwt'})
    assert resp.status_code == 401
    assert resp.json()['reason'] == 'invalid_token'


def test_logout_clears_cookie(client):
    resp = client.post('/admin/logout', follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers['location'] == '/admin/login'
    assert COOKIE_NAME in resp.headers.get('set-cookie', '')
