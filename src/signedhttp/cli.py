"""signedhttp CLI - Key generation and request signing."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from signedhttp.common.errors import SignatureError
from signedhttp.common.hmac import HMAC_SHA256, HmacKeyRing
from signedhttp.common.http import HttpRequest
from signedhttp.common.logging import setup_logging
from signedhttp.common.settings import get_settings
from signedhttp.signature.engine import HttpSignature, Signer, Verifier
from signedhttp.signature.keys import ED25519, Ed25519KeyRing, generate_keypair

console = Console()


def _parse_headers(values: tuple[str, ...]) -> list[tuple[str, str]]:
    headers: list[tuple[str, str]] = []
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected 'Name: value', got {value!r}", param_hint="--header")
        headers.append((name.strip(), header_value.strip()))
    return headers


def _build_crypto(
    key_id: str,
    hmac_secret: str | None,
    private_key: str | None,
    public_key: str | None,
) -> tuple[str, Signer, Verifier]:
    if hmac_secret:
        hmac_ring = HmacKeyRing({key_id: hmac_secret})
        return HMAC_SHA256, hmac_ring.sign, hmac_ring.verify

    ed25519_ring = Ed25519KeyRing()
    if private_key:
        ed25519_ring.add_private_key(key_id, Path(private_key).read_text())
    elif public_key:
        ed25519_ring.add_public_key(key_id, Path(public_key).read_text())
    else:
        raise click.UsageError("One of --hmac-secret, --private-key or --public-key is required")
    return ED25519, ed25519_ring.sign, ed25519_ring.verify


def _build_service(
    algorithm: str,
    signer: Signer,
    verifier: Verifier,
    required_headers: str | None,
    method: str,
) -> HttpSignature:
    service = HttpSignature(algorithm, signer, verifier)
    if required_headers:
        service = service.with_required_headers(method, required_headers.split())
    return service


@click.group()
@click.option("--log-level", default="WARNING", help="Log level")
def cli(log_level: str) -> None:
    """signedhttp CLI - Sign and verify HTTP requests."""
    setup_logging(log_level)


@cli.command()
@click.option("--output", "-o", default="keys", help="Output directory for keys")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing keys")
def keygen(output: str, force: bool) -> None:
    """Generate an Ed25519 key pair."""
    output_dir = Path(output)
    output_dir.mkdir(parents=True, exist_ok=True)

    private_path = output_dir / "signature_private.pem"
    public_path = output_dir / "signature_public.pem"

    if private_path.exists() and not force:
        console.print(f"[red]{private_path} already exists. Use --force to overwrite.[/red]")
        sys.exit(1)

    private_pem, public_pem = generate_keypair()
    private_path.write_text(private_pem)
    public_path.write_text(public_pem)
    private_path.chmod(0o600)

    console.print(f"[green]Private key saved to: {private_path}[/green]")
    console.print(f"[green]Public key saved to: {public_path}[/green]")


@cli.command()
@click.argument("method")
@click.argument("url")
@click.option("--header", "-H", "headers", multiple=True, help="Request header 'Name: value'")
@click.option("--key-id", required=True, help="Key id to sign with")
@click.option("--hmac-secret", envvar="SIGNEDHTTP_HMAC_SECRET", help="HMAC shared secret")
@click.option("--private-key", type=click.Path(exists=True, dir_okay=False), help="Ed25519 private key PEM")
@click.option("--required-headers", help="Space-separated headers to sign")
@click.option("--client-id", help="Client id embedded next to the nonce")
@click.option("--nonce-seed", type=int, help="Nonce counter seed")
def sign(
    method: str,
    url: str,
    headers: tuple[str, ...],
    key_id: str,
    hmac_secret: str | None,
    private_key: str | None,
    required_headers: str | None,
    client_id: str | None,
    nonce_seed: int | None,
) -> None:
    """Print the signature headers for a request."""
    algorithm, signer, verifier = _build_crypto(key_id, hmac_secret, private_key, None)
    service = _build_service(algorithm, signer, verifier, required_headers, method)
    if nonce_seed is not None:
        service = service.with_nonce(nonce_seed)

    request = HttpRequest.create(method.upper(), url, _parse_headers(headers))
    signed = service.sign(request, key_id, client_id=client_id)

    for name in ("Date", "X-Date", "Authorization"):
        if signed.has_header(name):
            click.echo(f"{name}: {signed.get_header_line(name)}")


@cli.command()
@click.argument("method")
@click.argument("url")
@click.option("--header", "-H", "headers", multiple=True, help="Request header 'Name: value'")
@click.option("--key-id", required=True, help="Key id the secret or public key belongs to")
@click.option("--hmac-secret", envvar="SIGNEDHTTP_HMAC_SECRET", help="HMAC shared secret")
@click.option("--public-key", type=click.Path(exists=True, dir_okay=False), help="Ed25519 public key PEM")
@click.option("--required-headers", help="Space-separated headers that must be signed")
@click.option("--clock-skew", type=int, default=300, show_default=True, help="Max signature age (s)")
def verify(
    method: str,
    url: str,
    headers: tuple[str, ...],
    key_id: str,
    hmac_secret: str | None,
    public_key: str | None,
    required_headers: str | None,
    clock_skew: int,
) -> None:
    """Verify a signed request."""
    algorithm, signer, verifier = _build_crypto(key_id, hmac_secret, None, public_key)
    service = _build_service(algorithm, signer, verifier, required_headers, method)
    service = service.with_clock_skew(clock_skew)

    request = HttpRequest.create(method.upper(), url, _parse_headers(headers))
    try:
        params = service.verify_params(request)
    except SignatureError as exc:
        console.print(f"[red]Signature rejected: {exc.message}[/red]")
        sys.exit(1)

    table = Table(title="Verified signature")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value")
    for name, value in params.items():
        table.add_row(name, value)
    console.print(table)


@cli.command()
@click.option("--host", help="Bind address (default: SIGNEDHTTP_HOST)")
@click.option("--port", type=int, help="Port (default: SIGNEDHTTP_PORT)")
def serve(host: str | None, port: int | None) -> None:
    """Run the signature verification service."""
    import uvicorn

    from signedhttp.app import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
