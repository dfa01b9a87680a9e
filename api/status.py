from flask import Blueprint, jsonify

import dependencies
from timezone_utils import format_app_datetime, get_current_datetime

status_bp = Blueprint('status_bp', __name__)

# --- Helper Check Functions ---

def check_store():
    """Checks that the configured record store can be read."""
    return dependencies.get_store().health_check()

def check_remote_api():
    store = dependencies.get_store()
    remote = getattr(store, 'remote', None)
    if remote is None:
        return {"status": "OK", "details": "Remote API mirroring is not configured."}
    return remote.health_check()

def check_redis():
    """Checks if the Redis server is responsive."""
    if not dependencies.REDIS_URL:
        return {"status": "OK", "details": "Redis is not configured; Gemini key rotation starts at key 1."}
    redis_client = dependencies.get_redis_connection()
    if not redis_client:
        return {"status": "ERROR", "details": "Redis client could not connect."}
    try:
        redis_client.ping()
        return {"status": "OK", "details": "Ping successful."}
    except Exception as e:
        return {"status": "ERROR", "details": f"Failed to ping Redis server: {str(e)}"}

def check_gemini_api():
    """Reports key configuration only; a live probe would spend quota on every health check."""
    if not dependencies.ACTIVE_GEMINI_KEYS:
        return {"status": "OK", "details": "No GEMINI_API_KEY_n configured; image evidence gets the attempt bonus only."}
    return {"status": "OK", "details": f"{len(dependencies.ACTIVE_GEMINI_KEYS)} Gemini API key(s) configured."}

# --- Main Endpoint ---
@status_bp.route('/health', methods=['GET'])
def health():
    all_checks = {
        "recordStore": check_store(),
        "remoteApi": check_remote_api(),
        "redis": check_redis(),
        "gemini": check_gemini_api(),
    }
    healthy = all(result["status"] == "OK" for result in all_checks.values())
    return jsonify({
        "status": "OK" if healthy else "ERROR",
        "checks": all_checks,
        "timestamp": format_app_datetime(get_current_datetime()),
    }), 200 if healthy else 503
