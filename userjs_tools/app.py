from flask import Flask, request, jsonify
from flask_cors import CORS
from datetime import datetime
import logging

from userjs_tools.config import load_settings
from userjs_tools.models.schemas import validate_payload
from userjs_tools.services.comment_stripper import strip_comments
from userjs_tools.services.pref_reconciler import KeyExtractor, PrefReconciler
from userjs_tools.services.userjs_diff import diff_userjs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
CORS(app)  # Allow requests from extension pages

# Initialize services
key_extractor = KeyExtractor()
reconciler = PrefReconciler(key_extractor)


def _payload(route):
    ok, payload, error = validate_payload(route, request.get_json(silent=True))
    if not ok:
        return None, (jsonify({'error': error}), 400)
    return payload, None


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now().isoformat(),
        'service': 'user.js maintenance backend'
    })


@app.route('/strip', methods=['POST'])
def strip():
    """Remove comments and blank lines from a user.js/prefs.js text"""
    try:
        payload, error = _payload('strip')
        if error:
            return error

        stripped = strip_comments(payload['text'])
        logger.info(f"Stripped comments: {len(payload['text'])} -> {len(stripped)} characters")

        return jsonify({
            'success': True,
            'text': stripped
        })

    except Exception as e:
        logger.error(f"Error stripping comments: {e}")
        return jsonify({'error': str(e)}), 500


@app.route('/reconcile', methods=['POST'])
def reconcile():
    """Drop from a prefs.js text the preferences the overrides declare"""
    try:
        payload, error = _payload('reconcile')
        if error:
            return error

        keys = key_extractor.extract_keys(payload['overrides'])
        result = reconciler.reconcile(keys, payload['prefs'])

        logger.info(f"Reconciled {len(keys)} keys: {result.removed_count} lines removed")

        return jsonify({
            'success': True,
            'kept': result.kept_text,
            'removed': result.removed_lines,
            'removed_count': result.removed_count
        })

    except Exception as e:
        logger.error(f"Error reconciling preferences: {e}")
        return jsonify({'error': str(e)}), 500


@app.route('/diff', methods=['POST'])
def diff():
    """Diff two user.js texts, ignoring comments and whitespace changes"""
    try:
        payload, error = _payload('diff')
        if error:
            return error

        result = diff_userjs(payload['old'], payload['new'])

        return jsonify({
            'success': True,
            'diff': result,
            'identical': not result
        })

    except Exception as e:
        logger.error(f"Error computing diff: {e}")
        return jsonify({'error': str(e)}), 500


@app.errorhandler(404)
def not_found(e):
    return jsonify({'error': 'Endpoint not found'}), 404


@app.errorhandler(500)
def internal_error(e):
    return jsonify({'error': 'Internal server error'}), 500


def main():
    settings = load_settings()
    logger.info("Starting user.js maintenance backend...")
    app.run(host=settings.api_host, port=settings.api_port)


if __name__ == '__main__':
    main()
