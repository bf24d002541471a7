import secrets
from typing import Dict, Optional


class SessionRegistry:
    """Maps a connection id to the token issued on its latest join.

    Tokens are not credentials; they only stop a stale tab or a replayed
    event from acting for a connection that has since rejoined.
    """

    def __init__(self):
        self._tokens: Dict[str, str] = {}

    def issue_token(self, player_id: str) -> str:
        token = f"{player_id}-{secrets.token_urlsafe(8)}"
        self._tokens[player_id] = token
        return token

    def verify(self, player_id: str, token) -> bool:
        current = self._tokens.get(player_id)
        if current is None or not isinstance(token, str):
            return False
        # Bytes, so non-ASCII input compares instead of raising
        return secrets.compare_digest(current.encode(), token.encode('utf-8', 'surrogatepass'))

    def revoke(self, player_id: str) -> None:
        self._tokens.pop(player_id, None)

    def token_for(self, player_id: str) -> Optional[str]:
        return self._tokens.get(player_id)

    def clear(self) -> None:
        self._tokens.clear()

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._tokens
