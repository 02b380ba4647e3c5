import pathlib

import jinja2
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, ThreadSafeSingleton

from stagegate.core import di


class TemplateContainer(DeclarativeContainer):
    @staticmethod
    @di.inject
    def provide_email_env(template_path: str, root_path: pathlib.Path = di.Provide["root"]) -> jinja2.Environment:
        """Jinja2 environment for notification emails.

        Templates come in pairs, `<event>.subject.txt` and `<event>.html`;
        only the HTML is autoescaped.
        """
        import jinja2

        import stagegate.lib.json

        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(root_path.joinpath(template_path)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.policies.update({
            "json.dumps_function": stagegate.lib.json.dumps,
        })
        return env

    config: Configuration = Configuration(strict=True)
    email: Provider[jinja2.Environment] = ThreadSafeSingleton(provide_email_env, config.email_path)
