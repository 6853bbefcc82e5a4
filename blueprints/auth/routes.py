"""
Authentication routes: login, logout.
Handles administrator authentication.
"""

from flask import render_template, redirect, url_for, flash, request, session, Blueprint, current_app
from flask_login import login_user, logout_user, login_required, current_user
from urllib.parse import urlparse

from blueprints.auth.forms import LoginForm
from models.errors import PersistenceError
from models.services import get_services
from models.user import User
from utils.messages import MESSAGES, get_message

auth_bp = Blueprint('auth', __name__, template_folder='../../templates/auth')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """
    Login route with form handling.

    GET: Display login form
    POST: Process login credentials
    """
    # Redirect if already logged in
    if current_user.is_authenticated:
        return redirect(url_for('admin.dashboard'))

    form = LoginForm()

    if form.validate_on_submit():
        try:
            user_dict = get_services().store.authenticate(form.email.data, form.password.data)
        except PersistenceError as e:
            current_app.logger.error(f'Login lookup failed: {e}')
            flash(MESSAGES['store_unavailable'], 'error')
            return redirect(url_for('auth.login'))

        if user_dict is None:
            flash(MESSAGES['invalid_credentials'], 'error')
            return redirect(url_for('auth.login'))

        user = User(user_dict)

        # Drop anything an anonymous visitor left in the session
        session.clear()
        login_user(user, remember=form.remember_me.data)

        flash(get_message('login_success', name=user.full_name or user.email), 'success')

        # Redirect to next page or default
        next_page = request.args.get('next')
        if not next_page or urlparse(next_page).netloc != '':
            next_page = url_for('admin.dashboard')

        return redirect(next_page)

    return render_template('login.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    """Logout current user."""
    logout_user()
    session.clear()
    flash(MESSAGES['logout_success'], 'success')
    return redirect(url_for('auth.login'))
