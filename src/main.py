# src/main.py
import logging
import time
from typing import Dict

from flask import (
    Flask,
    render_template,
    request,
    redirect,
    url_for,
    session,
    jsonify,
    g,
    flash,
)

from src.config import Config
from src.database import close_db, init_database
from src.blueprints.api import api_bp
from src.blueprints.dashboard import dashboard_bp
from src.observability import (
    configure_logging,
    increment_counter,
    observe_latency,
    get_metrics_snapshot,
    check_store_health,
)
from src.observability.logging_config import ensure_request_id
from src.services.auth_service import SESSION_FLAG, AuthService
from src.store import get_store

app = Flask(__name__, template_folder='../templates', static_folder='../static')
Config.configure_app(app)
configure_logging(app)
app.register_blueprint(dashboard_bp)
app.register_blueprint(api_bp)

logger = logging.getLogger(__name__)

NAV_ITEMS = (
    ("dashboard.home", "Dashboard"),
    ("dashboard.products", "Products"),
    ("dashboard.orders", "Orders"),
    ("dashboard.analytics", "Analytics"),
)
# API routes reachable without a session
PUBLIC_API_PREFIXES = ("/api/auth/",)


def init_store():
    """Create local tables when the dashboard runs against the SQL store."""
    if Config.STORE_BACKEND != "sql":
        return
    try:
        init_database()
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.exception("Error initializing database: %s", e)


init_store()


def is_authenticated() -> bool:
    return session.get(SESSION_FLAG) is True


def _start_admin_session() -> None:
    session.clear()
    session.permanent = True
    session[SESSION_FLAG] = True


def _end_admin_session() -> None:
    session.clear()


@app.context_processor
def inject_nav_context():
    return {
        "app_name": app.config.get("APP_NAME", Config.APP_NAME),
        "nav_items": NAV_ITEMS,
        "is_authenticated": is_authenticated(),
    }


KNOWN_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})
UNMATCHED_ENDPOINT = "unmatched"


def _request_labels() -> Dict[str, str]:
    # Unmatched paths and unknown methods collapse to fixed label values
    method = request.method if request.method in KNOWN_METHODS else "OTHER"
    return {"method": method, "endpoint": request.endpoint or UNMATCHED_ENDPOINT}


@app.before_request
def before_request_logging():
    g.request_started_at = time.perf_counter()
    g.request_id = ensure_request_id()
    increment_counter(
        "http_requests_total",
        labels=_request_labels(),
    )


@app.before_request
def enforce_session_gate():
    path = request.path
    authenticated = is_authenticated()

    if path.startswith("/dashboard") and not authenticated:
        return redirect(url_for('login'))
    if path == "/" and authenticated:
        return redirect(url_for('dashboard.home'))
    if path.startswith(("/api/", "/admin/")) and not path.startswith(PUBLIC_API_PREFIXES):
        if not authenticated:
            return jsonify({'error': 'Not authenticated'}), 401
    return None


@app.after_request
def after_request_logging(response):
    started = getattr(g, 'request_started_at', None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000
        observe_latency(
            "http_request_latency_ms",
            duration_ms,
            labels={
                **_request_labels(),
                "status": str(response.status_code),
            },
        )
    if response.status_code >= 500:
        increment_counter(
            "http_errors_total",
            labels={
                **_request_labels(),
                "status": str(response.status_code),
            },
        )
        logger.error("Request finished with error status %s", response.status_code)
    else:
        logger.info("Request finished", extra={"status_code": response.status_code})
    return response


@app.teardown_appcontext
def teardown_db(exception):
    close_db(exception)


# ---------------------------------------------
# Authentication
# ---------------------------------------------

@app.route('/', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        auth_service = AuthService.from_config(app.config)
        success, message, status_code, errors = auth_service.login(request.form)
        if success:
            _start_admin_session()
            flash("Login successful! Redirecting...", "success")
            return redirect(url_for('dashboard.home'))
        return render_template(
            'login.html',
            error=message,
            errors=errors,
            email=request.form.get('email', ''),
        ), status_code
    return render_template('login.html', errors={})


@app.route('/logout', methods=['POST'])
def logout():
    _end_admin_session()
    flash("Logged out successfully!", "success")
    return redirect(url_for('login'))


@app.route('/api/auth/login', methods=['POST'])
def api_login():
    payload = request.get_json(silent=True)
    auth_service = AuthService.from_config(app.config)
    success, message, status_code, errors = auth_service.login(payload)
    if success:
        _start_admin_session()
        return jsonify({'message': message}), status_code

    body = {'error': message}
    if errors:
        body['errors'] = errors
    return jsonify(body), status_code


@app.route('/api/auth/logout', methods=['POST'])
def api_logout():
    _end_admin_session()
    return jsonify({'message': 'Logout successful'}), 200


# ---------------------------------------------
# Operations
# ---------------------------------------------

@app.route('/health', methods=['GET'])
def health():
    store_status = check_store_health(get_store())
    overall = "UP" if store_status.get("status") == "UP" else "DEGRADED"
    status_code = 200 if overall == "UP" else 503
    return jsonify({
        "status": overall,
        "components": {
            "store": store_status
        }
    }), status_code


@app.route('/admin/metrics', methods=['GET'])
def admin_metrics():
    return jsonify(get_metrics_snapshot())
