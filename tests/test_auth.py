"""
Authentication tests.
"""


class TestLogin:
    """Tests for the login form."""

    def test_login_page_renders(self, client):
        response = client.get('/user/login')
        assert response.status_code == 200
        assert b'name="email"' in response.data

    def test_successful_login(self, client):
        """Valid credentials land on the dashboard."""
        response = client.post('/user/login', data={
            'email': 'admin@laptop-rental.com',
            'password': 'admin123'
        })
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/dashboard')

    def test_wrong_password(self, client):
        """Wrong passwords are rejected with a flash."""
        response = client.post('/user/login', data={
            'email': 'admin@laptop-rental.com',
            'password': 'wrong'
        }, follow_redirects=True)
        assert b'Invalid email or password' in response.data

        assert client.get('/admin/dashboard').status_code == 302

    def test_unknown_email(self, client):
        response = client.post('/user/login', data={
            'email': 'nobody@laptop-rental.com',
            'password': 'admin123'
        }, follow_redirects=True)
        assert b'Invalid email or password' in response.data

    def test_next_page_is_followed(self, client):
        """A local next parameter is honoured."""
        response = client.post('/user/login?next=/admin/reservations-all', data={
            'email': 'admin@laptop-rental.com',
            'password': 'admin123'
        })
        assert response.headers['Location'].endswith('/admin/reservations-all')

    def test_external_next_page_is_ignored(self, client):
        """Open redirects to other hosts are refused."""
        response = client.post('/user/login?next=https://evil.example.com/', data={
            'email': 'admin@laptop-rental.com',
            'password': 'admin123'
        })
        assert response.headers['Location'].endswith('/admin/dashboard')


class TestLogout:
    """Tests for logout."""

    def test_logout(self, authenticated_client):
        """Logout returns to the login page and drops access."""
        response = authenticated_client.get('/user/logout')
        assert response.status_code == 302
        assert '/user/login' in response.headers['Location']

        assert authenticated_client.get('/admin/dashboard').status_code == 302
