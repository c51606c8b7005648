"""``env(...)`` resolver and ``${NAME}`` interpolation.

``env(NAME)`` reads a host environment variable whose name may itself be
interpolated, e.g. ``env(DATABASE_URL_${APP_ENV})``.  A second argument is a
fallback used when the variable is unset or empty.
"""

from envlock.lib.resolver.base import BaseResolver, ResolutionContext, ResolutionError
from envlock.lib.schema.expressions import NAME_RE, Reference, Template


class EnvironmentResolver(BaseResolver):
    """Resolve a value from a host environment variable chosen at runtime."""

    @property
    def kind(self) -> str:
        return "env"

    async def resolve(self, args: list[str], context: ResolutionContext) -> str:
        if not 1 <= len(args) <= 2:
            msg = f"expected a variable name and an optional fallback, got {len(args)} argument(s)"
            raise ResolutionError(msg, resolver=self.kind)
        name = args[0].strip()
        if not NAME_RE.match(name):
            msg = "variable name is not a valid identifier"
            raise ResolutionError(msg, resolver=self.kind)
        value = context.host_env.get(name, "")
        if value:
            return value
        if len(args) == 2:
            return args[1]
        raise ResolutionError(f"environment variable {name} is not set", resolver=self.kind)


def interpolate(template: Template, context: ResolutionContext) -> str:
    """Substitute ``${NAME}`` references in a template.

    Declared dependencies come from ``context.values``; any other name is read
    from the host environment.

    Raises:
        ResolutionError: If a referenced name has no value.
    """
    out: list[str] = []
    for part in template.parts:
        if isinstance(part, Reference):
            value = context.values.get(part.name)
            if value is None:
                value = context.host_env.get(part.name) or None
            if value is None:
                msg = f"reference ${{{part.name}}} has no value"
                raise ResolutionError(msg)
            out.append(value)
        else:
            out.append(part)
    return "".join(out)
