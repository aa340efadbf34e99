from .app import create_app
import click

from .app.errors import ConfigurationError, DispatchError
from .app.models import SafeMessage
from .app.services.mail import get_dispatcher

app = create_app()


@app.cli.command("check-mail-config")
@click.option("--send-test", is_flag=True, help="Envía un mensaje de prueba a los destinatarios.")
def check_mail_config(send_test: bool = False):
    """Verifica que la configuración de correo esté completa."""
    try:
        dispatcher = get_dispatcher(app)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    settings = dispatcher.settings
    click.echo(f"Servidor SMTP: {settings.host}:{settings.port} (ssl={settings.use_ssl}, tls={settings.use_tls})")
    click.echo(f"Destinatarios: {', '.join(settings.recipients)}")
    click.echo(f"Formato del cuerpo: {dispatcher.formatter.name}")

    if not send_test:
        return

    message = SafeMessage(
        name="Contact relay",
        email=settings.recipients[0],
        message="Mensaje de prueba del formulario de contacto.",
        source_ip="cli",
    )
    try:
        dispatcher.send(message)
    except DispatchError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Mensaje de prueba enviado.")


if __name__ == "__main__":
    app.run(debug=True)
