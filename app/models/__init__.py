from app.models.user import User
from app.models.facility import Facility
from app.models.court import Court
from app.models.court_schedule import CourtSchedule
from app.models.booking import Booking
from app.models.maintenance_block import MaintenanceBlock
from app.models.match import Match
from app.models.join_request import JoinRequest
from app.models.notification import Notification
from app.models.fcm_token import FCMToken

# This makes the models directory a Python package and ensures all models are loaded
