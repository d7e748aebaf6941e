"""
Flask CLI commands for database setup and price maintenance.

Commands:
- flask init-db: Create the database tables
- flask analyze-prices: Preview sale prices for a markup, without writing
- flask update-prices: Reprice every product with a markup
- flask verify-prices: Check every product against an expected markup
- flask backup-products: Dump products to a timestamped JSON file
"""

import click
from flask import current_app

from stockpos.database import get_db
from stockpos.exceptions import StockposError
from stockpos.services import price_maintenance_service
from stockpos.utils.serializers import money


def _pct(value):
    return 'N/A' if value is None else f'{value:.2f}%'


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table that does not exist yet."""
        get_db().create_all()
        click.echo(click.style('✅ Tablas creadas correctamente', fg='green'))

    @app.cli.command('analyze-prices')
    @click.option('--markup', type=float, default=None, help='Markup sobre el costo unitario (%)')
    def analyze_prices(markup):
        """Show current vs. new sale price for every product."""
        markup = current_app.config['DEFAULT_MARKUP_PCT'] if markup is None else markup
        db = get_db()

        with db.session_factory() as session:
            rows = price_maintenance_service.analyze_prices(session, markup)

        if not rows:
            click.echo(click.style('No hay productos cargados.', fg='yellow'))
            return

        click.echo(click.style(f'\n📊 Análisis de precios con {markup}% de markup\n', bold=True))
        for row in rows:
            tag = ' [peso]' if row['is_weight'] else ''
            click.echo(f"{row['name']} ({row['sku']}){tag}")
            click.echo(f"   Costo unitario: {money(row['unit_cost'], 2)}")
            click.echo(
                f"   Precio actual: {money(row['current_sale_price'])} "
                f"(margen {_pct(row['current_realized_margin'])})"
            )
            color = 'green' if row['difference'] >= 0 else 'red'
            click.echo(click.style(
                f"   Precio nuevo:  {money(row['new_sale_price'])} "
                f"(margen {_pct(row['new_realized_margin'])}, diferencia {money(row['difference'])})",
                fg=color
            ))

        click.echo(f'\nTotal: {len(rows)} productos')

    @app.cli.command('update-prices')
    @click.option('--markup', type=float, default=None, help='Markup sobre el costo unitario (%)')
    @click.option('--dry-run', is_flag=True, help='Mostrar los cambios sin guardarlos')
    def update_prices(markup, dry_run):
        """Reprice every product as unit cost plus the markup."""
        markup = current_app.config['DEFAULT_MARKUP_PCT'] if markup is None else markup

        try:
            result = price_maintenance_service.update_prices(get_db(), markup, dry_run=dry_run)
        except StockposError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            raise SystemExit(1)

        for change in result['changes']:
            click.echo(
                f"{change['name']}: {money(change['old_sale_price'])} → "
                f"{money(change['new_sale_price'])} ({money(change['difference'])})"
            )

        title = 'Simulación' if dry_run else 'Actualización'
        click.echo(click.style(f"\n✅ {title} completada con {markup}% de markup", fg='green', bold=True))
        click.echo(f"   Actualizados: {result['updated']}")
        click.echo(f"   Sin cambios: {result['unchanged']}")
        click.echo(f"   Total: {result['total']}")
        click.echo(f"   Diferencia total: {money(result['total_difference'])}")
        if dry_run:
            click.echo(click.style('\n💡 Ejecuta sin --dry-run para aplicar los cambios', fg='yellow'))

    @app.cli.command('verify-prices')
    @click.option('--expected', type=float, default=None, help='Markup esperado (%)')
    @click.option('--tolerance', type=float, default=None, help='Tolerancia en puntos porcentuales')
    def verify_prices(expected, tolerance):
        """Check that every product is priced at the expected markup."""
        expected = current_app.config['DEFAULT_MARKUP_PCT'] if expected is None else expected
        tolerance = current_app.config['PRICE_TOLERANCE_PCT'] if tolerance is None else tolerance

        with get_db().session_factory() as session:
            result = price_maintenance_service.verify_prices(session, expected, tolerance)

        for issue in result['issues']:
            click.echo(click.style(
                f"⚠️  {issue['name']} ({issue['sku']}): esperado {_pct(issue['expected'])}, "
                f"actual {_pct(issue['actual'])} "
                f"(costo {money(issue['unit_cost'], 2)}, precio {money(issue['sale_price'])})",
                fg='yellow'
            ))

        click.echo(f"\nCorrectos: {result['correct']}")
        click.echo(f"Incorrectos: {result['incorrect']}")
        click.echo(f"Total: {result['total']}")

        if result['issues']:
            click.echo(click.style(f"\n❌ {result['incorrect']} productos fuera de tolerancia", fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'\n✅ Todos los precios tienen {expected}% de markup', fg='green', bold=True))

    @app.cli.command('backup-products')
    @click.option('--output', type=click.Path(file_okay=False), default=None, help='Directorio de destino')
    def backup_products(output):
        """Write every product, with category and supplier, to a JSON file."""
        output = output or current_app.config['BACKUP_DIR']

        with get_db().session_factory() as session:
            path = price_maintenance_service.backup_products(session, output)

        click.echo(click.style(f'✅ Backup creado: {path}', fg='green'))
