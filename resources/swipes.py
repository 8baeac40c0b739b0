import logging
from middleware.auth import auth_required
from flask_restful import Resource
from flask import request, current_app
from services import get_engine
from utils.response import success_response, error_response, engine_error_response

logger = logging.getLogger(__name__)


def client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()[:45]
    return request.remote_addr


class SwipeResource(Resource):
    """Record swipes and list the caller's active decisions"""

    @auth_required
    def post(self):
        """
        Like, pass or super like another user.
        A like that completes a mutual pair returns the new match.
        """
        try:
            user_id = request.user_id
            data = request.get_json(silent=True)

            if not data:
                return error_response("No data provided", 400)

            target_user_id = data.get('target_user_id')
            kind = data.get('kind')

            if target_user_id is None or not kind:
                return error_response("target_user_id and kind are required", 400)

            result = get_engine().record_swipe(user_id, target_user_id, kind, client_ip())
            if not result.ok:
                return engine_error_response(result.error)

            current_app.extensions['cache'].invalidate_user_cache(user_id, target_user_id)

            swipe = result.value['swipe']
            match = result.value['match']
            return success_response(
                {
                    'swipe': swipe.to_dict(),
                    'match': match.to_dict() if match else None,
                    'is_match': match is not None
                },
                "It's a match!" if match else "Swipe recorded",
                201
            )

        except Exception as e:
            logger.error(f"Error recording swipe: {str(e)}")
            return error_response("Failed to record swipe", 500)

    @auth_required
    def get(self):
        """Get the caller's active swipes, newest first"""
        try:
            limit = request.args.get('limit', 50, type=int)
            offset = request.args.get('offset', 0, type=int)

            result = get_engine().read_history(request.user_id, limit, offset)
            if not result.ok:
                return engine_error_response(result.error)

            swipes = [swipe.to_dict() for swipe in result.value]
            return success_response(
                {'swipes': swipes, 'total': len(swipes)},
                "Swipe history retrieved successfully"
            )

        except Exception as e:
            logger.error(f"Error fetching swipe history: {str(e)}")
            return error_response("Failed to fetch swipe history", 500)


class UndoSwipeResource(Resource):

    @auth_required
    def post(self):
        """Undo the caller's most recent swipe"""
        try:
            user_id = request.user_id

            result = get_engine().undo_last_swipe(user_id)
            if not result.ok:
                return engine_error_response(result.error)

            swipe = result.value['swipe']
            unmatched = result.value['match_status_changed']
            current_app.extensions['cache'].invalidate_user_cache(user_id, swipe.target_id)

            return success_response(
                {
                    'swipe': swipe.to_dict(),
                    'unmatched': unmatched.to_dict() if unmatched else None
                },
                "Swipe undone"
            )

        except Exception as e:
            logger.error(f"Error undoing swipe: {str(e)}")
            return error_response("Failed to undo swipe", 500)


class LikesReceivedResource(Resource):

    @auth_required
    def get(self):
        """Get likes the caller has not answered yet"""
        try:
            limit = request.args.get('limit', 20, type=int)
            offset = request.args.get('offset', 0, type=int)

            result = get_engine().read_likers(request.user_id, limit, offset)
            if not result.ok:
                return engine_error_response(result.error)

            likes = [
                {
                    'user_id': swipe.actor_id,
                    'kind': swipe.kind,
                    'liked_at': swipe.created_at.isoformat() if swipe.created_at else None
                }
                for swipe in result.value
            ]
            return success_response(
                {'likes': likes, 'total': len(likes)},
                "Likes retrieved successfully"
            )

        except Exception as e:
            logger.error(f"Error fetching received likes: {str(e)}")
            return error_response("Failed to fetch likes", 500)
