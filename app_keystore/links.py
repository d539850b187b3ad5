"""Link templates mapping logical keys to document names.

@public

Each document category (app index, app record, app key set, app token,
install token) has a template with ``{App}`` and ``{Install}`` placeholders,
for example ``tokens/{App}/installs/{Install}.json``. Templates are
deployment configuration; nothing else in the package hardcodes a path.

Example:
    >>> links = Links()
    >>> links.install_token_name(1, 7)
    'tokens/1/installs/7.json'
"""

import re
from string import Formatter
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from app_keystore.exceptions import InvalidArgumentError
from app_keystore.settings import Settings

APP_PARAM = "App"
INSTALL_PARAM = "Install"

# Parameters each category must reference, exactly.
_CATEGORY_PARAMS: dict[str, frozenset[str]] = {
    "app_index": frozenset(),
    "app": frozenset({APP_PARAM}),
    "app_keys": frozenset({APP_PARAM}),
    "app_token": frozenset({APP_PARAM}),
    "install_token": frozenset({APP_PARAM, INSTALL_PARAM}),
}

# Representative ids used to check templates for overlapping names. Mixed
# digit counts catch templates whose placeholders touch ("{App}{Install}").
_SAMPLE_IDS = (1, 12, 123, 4567)


def template_params(template: str) -> set[str]:
    """Return the placeholder names referenced by template.

    Raises:
        InvalidArgumentError: For malformed templates, or placeholders with
            conversions, format specs, attribute or index access.
    """
    try:
        parsed = list(Formatter().parse(template))
    except ValueError as e:
        raise InvalidArgumentError(f"malformed link template {template!r}: {e}") from e
    params: set[str] = set()
    for _literal, field, spec, conversion in parsed:
        if field is None:
            continue
        if not field.isidentifier() or spec or conversion:
            raise InvalidArgumentError(f"unsupported placeholder {{{field}}} in link template {template!r}")
        params.add(field)
    return params


def expand(template: str, **params: Any) -> str:
    """Expand template with the given parameters.

    Raises:
        InvalidArgumentError: When the template references a parameter that
            was not supplied, or is malformed.
    """
    missing = template_params(template) - params.keys()
    if missing:
        raise InvalidArgumentError(f"link template {template!r} references unsupplied parameters: {', '.join(sorted(missing))}")
    return template.format_map({key: str(value) for key, value in params.items()})


def _template_regex(template: str) -> re.Pattern[str]:
    parts: list[str] = []
    for literal, field, _spec, _conversion in Formatter().parse(template):
        parts.append(re.escape(literal))
        if field is not None:
            parts.append(r"\d+")
    return re.compile("".join(parts))


class Links(BaseModel):
    """Document name templates for one deployment.

    @public

    Validated on construction: every template must reference exactly the
    parameters of its category, and no two categories may produce the same
    name for any of a set of representative ids.
    """

    model_config = ConfigDict(frozen=True)

    app_index: str = Settings.model_fields["link_app_index"].default
    app: str = Settings.model_fields["link_app"].default
    app_keys: str = Settings.model_fields["link_app_keys"].default
    app_token: str = Settings.model_fields["link_app_token"].default
    install_token: str = Settings.model_fields["link_install_token"].default

    @model_validator(mode="after")
    def validate_templates(self) -> "Links":
        for category, required in _CATEGORY_PARAMS.items():
            template = getattr(self, category)
            try:
                params = template_params(template)
            except InvalidArgumentError as e:
                raise ValueError(str(e)) from e
            if params != required:
                expected = ", ".join(sorted(required)) or "no placeholders"
                raise ValueError(f"link template {category}={template!r} must reference {expected}")

        patterns = {category: _template_regex(getattr(self, category)) for category in _CATEGORY_PARAMS}
        for category in _CATEGORY_PARAMS:
            for name in self._sample_names(category):
                for other, pattern in patterns.items():
                    if other != category and pattern.fullmatch(name):
                        raise ValueError(f"link templates {category} and {other} can produce the same document name {name!r}")
        return self

    def _sample_names(self, category: str) -> set[str]:
        template = getattr(self, category)
        return {expand(template, App=app, Install=install) for app in _SAMPLE_IDS for install in _SAMPLE_IDS}

    @classmethod
    def from_settings(cls, settings: Settings) -> "Links":
        """Links configured through APP_KEYSTORE_LINK_* settings."""
        return cls(
            app_index=settings.link_app_index,
            app=settings.link_app,
            app_keys=settings.link_app_keys,
            app_token=settings.link_app_token,
            install_token=settings.link_install_token,
        )

    def app_index_name(self) -> str:
        return expand(self.app_index)

    def app_name(self, app: int) -> str:
        return expand(self.app, App=app)

    def app_keys_name(self, app: int) -> str:
        return expand(self.app_keys, App=app)

    def app_token_name(self, app: int) -> str:
        return expand(self.app_token, App=app)

    def install_token_name(self, app: int, install: int) -> str:
        return expand(self.install_token, App=app, Install=install)


DEFAULT_LINKS = Links()
"""Links built from the APP_KEYSTORE_LINK_* defaults, ignoring the environment.

@public
"""
