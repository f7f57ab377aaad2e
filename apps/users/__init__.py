"""Users app package.

Defines the custom user model with guest/owner/admin roles and the
JWT login endpoints. Use ``apps.users.models.CustomUser`` as the
AUTH_USER_MODEL throughout the project.
"""
