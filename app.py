from flask import Flask
from flask_cors import CORS
from flask_restful import Api, Resource
from flask_migrate import Migrate
from models import db
from models.base import enable_sqlite_savepoints
from config import Config
from utils.cache import CacheManager
import logging

migrate = Migrate()


class HealthCheck(Resource):
    def get(self):
        return {"status": "ok"}


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s %(message)s'
    )

    CORS(app)

    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            enable_sqlite_savepoints(db.engine)

    app.extensions['cache'] = CacheManager.from_config(app.config)

    from resources.swipes import SwipeResource, UndoSwipeResource, LikesReceivedResource
    from resources.queue import QueueResource, QueueRebuildResource
    from resources.match import UserMatchesResource
    from resources.analytics import AnalyticsResource

    api = Api(app)
    api.add_resource(HealthCheck, '/health')

    # Swipe routes
    api.add_resource(SwipeResource, '/swipes')
    api.add_resource(UndoSwipeResource, '/swipes/undo')
    api.add_resource(LikesReceivedResource, '/swipes/likes-received')

    # Discovery queue routes
    api.add_resource(QueueResource, '/queue')
    api.add_resource(QueueRebuildResource, '/queue/rebuild')

    # Match and analytics routes
    api.add_resource(UserMatchesResource, '/matches')
    api.add_resource(AnalyticsResource, '/analytics')

    return app


if __name__ == '__main__':
    create_app().run(debug=True)
