from orderdesk.extensions import db
from datetime import datetime


class ActivityLog(db.Model):
    __tablename__ = "activity_log"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer)
    user_email = db.Column(db.String(255))
    user_name = db.Column(db.String(200))
    action_type = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)
    # "metadata" is reserved on declarative models
    details = db.Column("metadata", db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
