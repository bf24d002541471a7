import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gamestate.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PORT = int(os.environ.get('PORT', '3000'))
    # Shared secret for admin commands
    ADMIN_PWD = os.environ.get('ADMIN_PWD') or 'securePassword123'
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '8'))
    # Session auto-reset (seconds since game start)
    GAME_TIMEOUT_SEC = int(os.environ.get('GAME_TIMEOUT_SEC', '3600'))
    RESET_CHECK_INTERVAL_SEC = int(os.environ.get('RESET_CHECK_INTERVAL_SEC', '60'))
    # Presence sweep: how often, and how long a disconnected player is kept
    PRESENCE_INTERVAL_SEC = int(os.environ.get('PRESENCE_INTERVAL_SEC', '60'))
    DISCONNECT_TIMEOUT_SEC = int(os.environ.get('DISCONNECT_TIMEOUT_SEC', '30'))
    # Safety-net snapshot interval (seconds)
    AUTOSAVE_INTERVAL_SEC = int(os.environ.get('AUTOSAVE_INTERVAL_SEC', '300'))
    # Turn timer alarm fires this long after start_timer
    ALARM_DELAY_SEC = int(os.environ.get('ALARM_DELAY_SEC', '120'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
