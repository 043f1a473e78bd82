from slowapi import Limiter

from app.features.users.dependencies import get_authorization_header


# Keyed on the bearer token so each signed-in user gets their own budget
limiter = Limiter(key_func=get_authorization_header)
