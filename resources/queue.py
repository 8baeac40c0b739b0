import logging
from middleware.auth import auth_required
from flask_restful import Resource
from flask import request, current_app
from services import get_engine
from utils.response import success_response, error_response, engine_error_response

logger = logging.getLogger(__name__)


class QueueResource(Resource):
    """Resource for reading the caller's discovery queue"""

    @auth_required
    def get(self):
        """
        Get the next candidates, best compatibility first.
        Returned candidates are stamped as shown.
        """
        try:
            limit = request.args.get('limit', 20, type=int)

            result = get_engine().read_queue(request.user_id, limit, mark_shown=True)
            if not result.ok:
                return engine_error_response(result.error)

            candidates = [
                {
                    **candidate,
                    'last_shown_at': candidate['last_shown_at'].isoformat() if candidate['last_shown_at'] else None
                }
                for candidate in result.value
            ]

            if not candidates:
                return success_response(
                    {'candidates': []},
                    "No candidates queued. Rebuild your queue to discover more people."
                )

            return success_response(
                {'candidates': candidates},
                f"Found {len(candidates)} candidates"
            )

        except Exception as e:
            logger.error(f"Error reading queue: {str(e)}")
            return error_response("Failed to read queue", 500)


class QueueRebuildResource(Resource):

    @auth_required
    def post(self):
        """Rebuild the caller's queue from their current preferences"""
        try:
            data = request.get_json(silent=True) or {}
            size = data.get('size', current_app.config.get('DEFAULT_QUEUE_SIZE', 50))

            result = get_engine().rebuild_queue(request.user_id, size)
            if not result.ok:
                return engine_error_response(result.error)

            return success_response(
                {'entries_written': result.value},
                f"Queue rebuilt with {result.value} candidates"
            )

        except Exception as e:
            logger.error(f"Error rebuilding queue: {str(e)}")
            return error_response("Failed to rebuild queue", 500)
