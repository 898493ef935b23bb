from flask import Flask, request, jsonify
import os
import time
import uuid
import threading
from collections import deque, defaultdict

from complaint_modules import config
from complaint_modules.errors import StorageError
from complaint_modules.eventlog import append_log, event_log, utc_now_iso
from complaint_modules.generator import build_generator
from complaint_modules.languages import is_supported, supported_languages
from complaint_modules.models import ComplaintRecord, STATUSES
from complaint_modules.speech import save_transient_audio, stt_payload, tts_payload
from complaint_modules.store import new_complaint_id, open_store

SERVICE_NAME = 'Voice Complaint Intake'
SERVICE_VERSION = '2.0.0'
FEATURES = [
    'Audio Recording',
    'Speech-to-Text (Tamil & English)',
    'AI-Powered Complaint Generation',
    'Text-to-Speech Verification',
    'Database Storage',
]

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Attempt to load .env from project root (idempotent, never overrides explicit env)
config.load_dotenv(os.path.join(BASE_DIR, '.env'))

# -----------------------------
# Rate limiting for the generation endpoint (sliding window per client)
# -----------------------------
RATE_LIMIT_WINDOW_SECONDS = config.env_int('GENERATE_RATE_WINDOW', 60)
RATE_LIMIT_MAX_REQUESTS = config.env_int('GENERATE_RATE_MAX', 30)  # per window per IP
RATE_LIMIT_RETRY_AFTER = RATE_LIMIT_WINDOW_SECONDS
_RATE_HISTORY = defaultdict(lambda: deque())  # key -> deque[timestamps]
_rate_lock = threading.Lock()

def _rate_limit(key: str) -> bool:
    """Return True if allowed, False if over limit."""
    if RATE_LIMIT_MAX_REQUESTS <= 0:
        return True
    now = time.time()
    window_start = now - RATE_LIMIT_WINDOW_SECONDS
    with _rate_lock:
        dq = _RATE_HISTORY[key]
        while dq and dq[0] < window_start:
            dq.popleft()
        if len(dq) >= RATE_LIMIT_MAX_REQUESTS:
            return False
        dq.append(now)
    return True

# In-memory counters, reset on restart: name -> help text for /metrics
COUNTERS = {
    'requests_total': 'HTTP requests across all endpoints',
    'complaints_generated_total': 'Complaint letters generated',
    'ai_generations_total': 'Letters written by the AI provider',
    'template_generations_total': 'Letters written from the built-in template',
    'complaints_saved_total': 'Complaints persisted to the store',
    'status_updates_total': 'Complaint status updates',
    'errors_total': 'Responses with a 5xx status',
    'rate_limited_total': 'Generation requests refused by the rate limiter',
}
METRICS = dict.fromkeys(COUNTERS, 0)
_metrics_lock = threading.Lock()
_START_TIME = time.time()

def _inc(metric: str, amt: int = 1):
    if metric not in COUNTERS:
        raise KeyError(f"unknown counter: {metric}")
    with _metrics_lock:
        METRICS[metric] += amt

def _metrics_text() -> str:
    with _metrics_lock:
        snapshot = dict(METRICS)
    lines = []
    for name, help_text in COUNTERS.items():
        lines += [f"# HELP {name} {help_text}", f"# TYPE {name} counter", f"{name} {snapshot[name]}"]
    lines += [
        "# HELP uptime_seconds Seconds since the service started",
        "# TYPE uptime_seconds gauge",
        f"uptime_seconds {int(time.time() - _START_TIME)}",
    ]
    return "\n".join(lines) + "\n"

app = Flask(__name__)

# Runtime folders
folders = [config.data_dir(), config.log_dir(), config.upload_dir()]

for folder in folders:
    os.makedirs(folder, exist_ok=True)

# Services are built once here and looked up through app.config so tests can swap them
app.config['COMPLAINT_GENERATOR'] = build_generator()
app.config['COMPLAINT_STORE'] = open_store()

def _generator():
    return app.config['COMPLAINT_GENERATOR']

def _store():
    return app.config['COMPLAINT_STORE']

append_log(
    f"{SERVICE_NAME} initialized with folders: {', '.join(folders)} | "
    f"ai_provider={_generator().provider_name} | store={_store().path}"
)
if _generator().ai_client is None:
    append_log('GROQ_API_KEY not configured, using template-based generation')

# -----------------------------
# Request id, security headers, access log
# -----------------------------
@app.before_request
def _access_start():
    if os.environ.get('ACCESS_LOG_JSON') == '1':
        request._start_time = time.time()  # pylint: disable=protected-access
    incoming = request.headers.get('X-Request-Id')
    request.request_id = incoming or uuid.uuid4().hex  # type: ignore[attr-defined]
    _inc('requests_total')

@app.after_request
def _set_security_headers(resp):
    resp.headers.setdefault('X-Content-Type-Options', 'nosniff')
    resp.headers.setdefault('X-Frame-Options', 'DENY')
    resp.headers.setdefault('Referrer-Policy', 'no-referrer')
    rid = getattr(request, 'request_id', None)
    if rid:
        resp.headers.setdefault('X-Request-Id', rid)
    if os.environ.get('ACCESS_LOG_JSON') == '1':
        started = getattr(request, '_start_time', None)
        dur_ms = int((time.time() - started) * 1000) if started is not None else None
        event_log('access',
                  method=request.method,
                  path=request.full_path.rstrip('?'),
                  status=resp.status_code,
                  ip=request.remote_addr,
                  dur_ms=dur_ms,
                  request_id=rid)
    return resp

@app.errorhandler(500)
def internal_error(e):
    append_log(f"ERROR_500 path={request.path} error={e}")
    event_log('error_500', path=request.path, msg=str(e))
    _inc('errors_total')
    return jsonify({'error': 'Internal server error'}), 500

def _error(message: str, status: int):
    if status >= 500:
        _inc('errors_total')
    return jsonify({'error': message}), status

def _client_key(prefix: str) -> str:
    ip = request.headers.get('X-Forwarded-For', request.remote_addr) or 'unknown'
    return f"{prefix}:{ip}"

def _json_body():
    """Parsed JSON object, {} when the body is absent or unparseable, None when it is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None

def _text_field(data: dict, name: str) -> str:
    # non-string values count as missing
    value = data.get(name)
    return value.strip() if isinstance(value, str) else ''

# -----------------------------
# Health & readiness
# -----------------------------
@app.route('/')
def index():
    return jsonify({
        'service': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'languages': supported_languages(),
    })

@app.route('/api/health')
def api_health():
    return jsonify({
        'status': 'healthy',
        'service': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'features': FEATURES,
        'ai_provider': _generator().provider_name,
        'timestamp': utc_now_iso(),
        'message': 'Backend is running correctly',
    })

@app.route('/healthz')
def healthz():
    return jsonify({
        "status": "ok",
        "time": utc_now_iso(),
        "folders": folders,
    }), 200

@app.route('/readyz')
def readyz():
    """Readiness probe verifying writable runtime dirs and a readable store."""
    snapshot, status_ok = _readiness_snapshot()
    return jsonify(snapshot), 200 if status_ok else 503

def _readiness_snapshot():
    """Return (snapshot_dict, healthy_bool)."""
    writable = {}
    for d in folders:
        test_file = os.path.join(d, '.readyz.tmp')
        try:
            with open(test_file, 'w') as f:
                f.write('ok')
            os.remove(test_file)
            writable[d] = True
        except OSError:
            writable[d] = False
    store_ok = _store().check()
    status_ok = all(writable.values()) and store_ok
    snapshot = {
        'status': 'ready' if status_ok else 'degraded',
        'writable': writable,
        'store_load': store_ok,
        'time': utc_now_iso()
    }
    return snapshot, status_ok

@app.route('/metrics')
def metrics():
    return _metrics_text(), 200, {'Content-Type': 'text/plain; version=0.0.4'}

# -----------------------------
# Complaint generation
# -----------------------------
@app.route('/api/generate-complaint', methods=['POST'])
def generate_complaint():
    if not _rate_limit(_client_key('generate')):
        _inc('rate_limited_total')
        event_log('rate_limited', path=request.path, ip=request.remote_addr)
        return (jsonify({'error': 'rate_limited', 'retry_after': RATE_LIMIT_RETRY_AFTER}),
                429,
                {'Retry-After': str(RATE_LIMIT_RETRY_AFTER)})
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    text = _text_field(data, 'text') or _text_field(data, 'transcribed_text')
    if not text:
        return _error('No text provided', 400)
    language = _text_field(data, 'language') or 'en'
    if not is_supported(language):
        return _error(f'Unsupported language: {language}', 400)

    try:
        result = _generator().generate(text, language)
    except Exception as e:  # pragma: no cover (generator absorbs AI failures)
        append_log(f"generate_error {e}")
        return _error('Failed to generate complaint', 500)

    _inc('complaints_generated_total')
    _inc('ai_generations_total' if result.source == 'ai' else 'template_generations_total')
    event_log('complaint_generated', language=language, category=result.category, source=result.source)
    return jsonify({
        'success': True,
        'complaint': result.complaint_text,
        'category': result.category,
        'details': result.details,
    })

# -----------------------------
# Complaint records
# -----------------------------
@app.route('/api/complaints', methods=['POST'])
def submit_complaint():
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    complaint = _text_field(data, 'complaint')
    transcribed = _text_field(data, 'transcribed_text')
    if not complaint or not transcribed:
        return _error('Missing required fields', 400)
    language = _text_field(data, 'language') or 'en'
    if not is_supported(language):
        return _error(f'Unsupported language: {language}', 400)

    record = ComplaintRecord(
        id=new_complaint_id(),
        complaint_text=complaint,
        transcribed_text=transcribed,
        language=language,
        category=_text_field(data, 'category') or 'Other',
        status='submitted',
        audio_path=_text_field(data, 'audio_path') or None,
    )
    try:
        saved = _store().save(record)
    except StorageError as e:
        append_log(f"storage_error {e}")
        event_log('storage_error', op='save', msg=str(e))
        return _error('Failed to submit complaint', 500)

    _inc('complaints_saved_total')
    event_log('complaint_saved', complaint_id=saved.id, language=saved.language, category=saved.category)
    return jsonify({
        'success': True,
        'complaint_id': saved.id,
        'message': 'Complaint submitted successfully',
        'complaint': saved.to_dict(),
    })

@app.route('/api/complaints', methods=['GET'])
def list_complaints():
    complaint_id = request.args.get('id')
    if complaint_id:
        return get_complaint(complaint_id)
    try:
        records = _store().get_all()
    except StorageError as e:
        append_log(f"storage_error {e}")
        event_log('storage_error', op='list', msg=str(e))
        return _error('Failed to fetch complaints', 500)
    return jsonify({'success': True, 'complaints': [r.to_dict() for r in records]})

@app.route('/api/complaints/<complaint_id>', methods=['GET'])
def get_complaint(complaint_id):
    try:
        record = _store().get_by_id(complaint_id)
    except StorageError as e:
        append_log(f"storage_error {e}")
        event_log('storage_error', op='get', msg=str(e))
        return _error('Failed to fetch complaints', 500)
    if record is None:
        return _error('Complaint not found', 404)
    return jsonify({'success': True, 'complaint': record.to_dict()})

@app.route('/api/complaints/<complaint_id>/status', methods=['POST'])
def update_complaint_status(complaint_id):
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    status = _text_field(data, 'status')
    if status not in STATUSES:
        return _error(f"Invalid status, expected one of: {', '.join(STATUSES)}", 400)
    try:
        _store().update_status(complaint_id, status)
        record = _store().get_by_id(complaint_id)
    except StorageError as e:
        append_log(f"storage_error {e}")
        event_log('storage_error', op='update_status', msg=str(e))
        return _error('Failed to update complaint', 500)
    _inc('status_updates_total')
    event_log('complaint_status_updated', complaint_id=complaint_id, status=status, found=record is not None)
    return jsonify({'success': True, 'complaint': record.to_dict() if record else None})

# -----------------------------
# Browser speech helpers
# -----------------------------
@app.route('/api/text-to-speech', methods=['POST'])
def text_to_speech():
    data = _json_body()
    if data is None:
        return _error('Request body must be a JSON object', 400)
    text = _text_field(data, 'text')
    if not text:
        return _error('No text provided', 400)
    return jsonify(tts_payload(text, _text_field(data, 'language') or 'en'))

@app.route('/api/speech-to-text', methods=['POST'])
def speech_to_text():
    upload = request.files.get('audio')
    if not upload:
        return _error('No audio file provided', 400)
    language = (request.form.get('language') or 'en').strip()
    try:
        path = save_transient_audio(
            upload,
            config.upload_dir(),
            config.env_float('AUDIO_RETENTION_SECONDS', 60.0),
        )
    except OSError as e:
        append_log(f"audio_save_error {e}")
        return _error('Internal server error', 500)
    return jsonify(stt_payload(path, language))


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=config.truthy(os.getenv("FLASK_DEBUG", "0")))
