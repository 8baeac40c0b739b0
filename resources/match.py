import logging
from middleware.auth import auth_required
from flask_restful import Resource
from flask import request
from services import get_engine
from utils.response import success_response, error_response, engine_error_response

logger = logging.getLogger(__name__)


class UserMatchesResource(Resource):
    """Resource for getting user's matches"""

    @auth_required
    def get(self):
        """Get the caller's matches, most recent first. ?status=all lists every status."""
        try:
            user_id = request.user_id
            status = request.args.get('status', 'active')
            if status == 'all':
                status = None

            result = get_engine().read_matches(user_id, status)
            if not result.ok:
                return engine_error_response(result.error)

            matches_data = [
                {
                    'match_id': match.id,
                    'user_id': match.other_user(user_id),
                    'status': match.status,
                    'matched_at': match.matched_at.isoformat() if match.matched_at else None,
                    'last_activity_at': match.last_activity_at.isoformat() if match.last_activity_at else None
                }
                for match in result.value
            ]

            return success_response(
                {'matches': matches_data, 'total': len(matches_data)},
                "Matches retrieved successfully"
            )

        except Exception as e:
            logger.error(f"Error fetching matches: {str(e)}")
            return error_response("Failed to fetch matches", 500)
