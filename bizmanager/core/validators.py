import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext as _


class PasswordComplexityValidator:
    """Require at least one lowercase letter, one uppercase letter and one digit"""

    def validate(self, password, user=None):
        if not (re.search(r'[a-z]', password) and re.search(r'[A-Z]', password) and re.search(r'\d', password)):
            raise ValidationError(
                _('Password must contain at least one uppercase letter, one lowercase letter and one number.'),
                code='password_too_simple',
            )

    def get_help_text(self):
        return _('Your password must contain at least one uppercase letter, one lowercase letter and one number.')
