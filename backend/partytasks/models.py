from partytasks import db

# The session is stored as one document in a single row
SNAPSHOT_ID = 1


class SessionSnapshot(db.Model):
    __tablename__ = 'session_snapshot'
    id = db.Column(db.Integer, primary_key=True)
    payload = db.Column(db.Text, nullable=False)  # JSON-encoded GameSession
    saved_at = db.Column(db.Float, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'saved_at': self.saved_at,
            'size': len(self.payload or ''),
        }
