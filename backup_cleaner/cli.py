"""Command-line interface for backup cleaner."""

import json
import logging
import signal
import sys
import threading
import click
from datetime import datetime
from typing import Optional

from .core.cleaner import BackupCleaner
from .core.models import CleanupPlan, DeletionOutcome
from .core.schedule import describe_next_run
from .config.config_manager import ConfigManager
from .utils.formatters import format_date, format_file_size, pluralize


MAX_ERRORS_SHOWN = 5


def setup_logging(level: str, log_file: Optional[str] = None):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def _cancel_on_interrupt(cancel_event: threading.Event):
    """Turn Ctrl+C into a cooperative scan cancellation."""
    def handler(signum, frame):
        click.echo("\nCancelling after the current folder...", err=True)
        cancel_event.set()

    try:
        return signal.signal(signal.SIGINT, handler)
    except ValueError:
        # Not on the main thread
        return None


def _run_scan(cleaner: BackupCleaner, show_progress: bool = True):
    cancel_event = threading.Event()
    previous_handler = _cancel_on_interrupt(cancel_event)

    def progress(current: int, total: int, folder_name: str):
        if show_progress:
            click.echo(f"  Scanned {current} of {total} - {folder_name}")

    try:
        return cleaner.scan(cancel_event=cancel_event, progress_callback=progress)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)


def _echo_plan(plan: CleanupPlan):
    for file in sorted(plan.files, key=lambda f: (f.customer_name, f.set_date, f.file_name)):
        click.echo(f"  {file.customer_name:<24} {format_date(file.set_date)}  "
                   f"{format_file_size(file.size_bytes):>10}  {file.file_name}")
    click.echo(f"\n{pluralize(plan.file_count, 'file')} from {pluralize(plan.customer_count, 'customer')} "
               f"- Total: {format_file_size(plan.total_bytes)}")


def _echo_outcome(outcome: DeletionOutcome):
    click.echo(f"{pluralize(outcome.deleted_count, 'file')} deleted, "
               f"{format_file_size(outcome.freed_bytes)} freed")

    if outcome.errors:
        click.echo(f"⚠️  {pluralize(len(outcome.errors), 'error')}:", err=True)
        for path, message in outcome.errors[:MAX_ERRORS_SHOWN]:
            click.echo(f"   • {path}: {message}", err=True)


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (default: logging.level from the configuration)')
@click.option('--log-file',
              help='Log file path (default: logging.file from the configuration)')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str], log_file: Optional[str]):
    """Backup Cleaner - Apply retention rules to per-customer backup folders."""
    ctx.ensure_object(dict)

    config_manager = ConfigManager(config_path)
    config_manager.load_config()
    logging_config = config_manager.get_logging_config()
    setup_logging(log_level or logging_config.get('level') or 'WARNING',
                  log_file or logging_config.get('file'))

    ctx.obj['config_path'] = config_path


@cli.command()
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def scan(ctx, output: str):
    """Scan customer folders and show what the retention policy would delete."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))

        if not cleaner.backup_folder_path:
            click.echo("No backup folder configured. Use 'settings --backup-path' first.", err=True)
            sys.exit(1)

        scan_result = _run_scan(cleaner, show_progress=(output == 'text'))
        reports = cleaner.build_reports(scan_result)

        if output == 'json':
            json_results = {
                'root_path': scan_result.root_path,
                'total_files': scan_result.total_files,
                'total_size': scan_result.total_size,
                'cancelled': scan_result.cancelled,
                'ignored_folders': scan_result.ignored_count,
                'direct_backup_folder': scan_result.is_direct_backup_folder,
                'minimum_age_months': cleaner.minimum_age_months,
                'customers': [
                    {
                        'name': report.target.folder_name,
                        'path': report.target.folder_path,
                        'enabled': report.target.enabled,
                        'new': report.target.is_new,
                        'keep_count': report.target.keep_count,
                        'total_backups': report.total_backups,
                        'files_to_delete': report.files_to_delete,
                        'bytes_to_free': report.bytes_to_free
                    }
                    for report in reports
                ]
            }
            click.echo(json.dumps(json_results, indent=2))
            return

        click.echo("\nScan Results:")
        click.echo("=" * 50)

        if not reports:
            click.echo("No backup files or customer folders found")
            return

        for report in reports:
            target = report.target
            flags = []
            if target.is_new:
                flags.append("new")
            if not target.enabled:
                flags.append("disabled")
            suffix = f" [{', '.join(flags)}]" if flags else ""

            click.echo(f"📂 {target.folder_name}{suffix}")
            click.echo(f"  Backup sets: {report.total_backups} (keeping {target.keep_count})")
            click.echo(f"  To delete: {pluralize(report.files_to_delete, 'file')} "
                       f"({format_file_size(report.bytes_to_free)})")

        enabled_reports = [r for r in reports if r.target.enabled]
        total_files = sum(r.files_to_delete for r in enabled_reports)
        total_bytes = sum(r.bytes_to_free for r in enabled_reports)
        ignored = f" ({scan_result.ignored_count} ignored)" if scan_result.ignored_count else ""

        click.echo("")
        if scan_result.cancelled:
            click.echo(f"Scan cancelled - {pluralize(scan_result.processed_count, 'folder')} processed{ignored}")
        elif scan_result.is_direct_backup_folder:
            click.echo("Scan completed - direct backup folder scanned")
        else:
            click.echo(f"Scan completed - {pluralize(len(reports), 'customer')} found{ignored}")
        click.echo(f"Selected for deletion: {pluralize(total_files, 'file')} ({format_file_size(total_bytes)})")

    except Exception as e:
        click.echo(f"Error during scan: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def preview(ctx):
    """List the files a cleanup would delete."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))
        scan_result = _run_scan(cleaner, show_progress=False)
        plan = cleaner.build_cleanup_plan(scan_result)

        if not plan.files:
            click.echo("No files to delete with the current settings")
            return

        _echo_plan(plan)

    except Exception as e:
        click.echo(f"Error building preview: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--yes', '-y', is_flag=True, help='Delete without asking for confirmation')
@click.pass_context
def cleanup(ctx, yes: bool):
    """Delete the backups that fall outside the retention policy."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))
        scan_result = _run_scan(cleaner, show_progress=False)

        if scan_result.cancelled:
            click.echo("Scan cancelled - nothing deleted")
            return

        plan = cleaner.build_cleanup_plan(scan_result)

        if not plan.files:
            click.echo("No files to delete with the current settings")
            return

        _echo_plan(plan)

        if not yes and not click.confirm(
                f"\nPermanently delete {pluralize(plan.file_count, 'file')}? This cannot be undone"):
            click.echo("Cleanup cancelled")
            return

        outcome = cleaner.delete(plan)
        _echo_outcome(outcome)

        if outcome.errors:
            sys.exit(1)

    except Exception as e:
        click.echo(f"Error during cleanup: {e}", err=True)
        sys.exit(1)


@cli.command('auto-cleanup')
@click.option('--if-due', is_flag=True, help='Only run when the daily automatic cleanup is due')
@click.pass_context
def auto_cleanup(ctx, if_due: bool):
    """Run the unattended cleanup for all enabled, known customers."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))

        if if_due and not cleaner.is_auto_cleanup_due():
            click.echo("Automatic cleanup is not due")
            return

        summary = cleaner.run_automatic_cleanup()

        if not summary.ran:
            click.echo(f"Automatic cleanup skipped: {summary.reason}")
            return

        parts = []
        if summary.plan.files:
            parts.append(f"{pluralize(summary.outcome.deleted_count, 'file')} deleted "
                         f"({format_file_size(summary.outcome.freed_bytes)})")
        else:
            parts.append("No files to delete")
        if summary.plan.newly_discovered:
            parts.append(f"{pluralize(len(summary.plan.newly_discovered), 'new folder')} skipped")

        click.echo(f"Automatic cleanup: {' • '.join(parts)}")

        if summary.plan.newly_discovered:
            click.echo("New folders are not cleaned automatically until configured:")
            for name in summary.plan.newly_discovered:
                click.echo(f"   • {name}")

        if summary.outcome.errors:
            _echo_outcome(summary.outcome)
            sys.exit(1)

    except Exception as e:
        click.echo(f"Automatic cleanup failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('name')
@click.option('--keep', type=click.IntRange(min=0), help='Number of most recent backup sets to keep')
@click.option('--enable/--disable', default=None, help='Include or exclude the customer from cleanup')
@click.pass_context
def customer(ctx, name: str, keep: Optional[int], enable: Optional[bool]):
    """Configure retention for one customer folder."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))
        target = cleaner.update_customer(name, keep_count=keep, enabled=enable)

        state = "enabled" if target.enabled else "disabled"
        click.echo(f"✅ {target.folder_name}: keeping {target.keep_count} backup sets, {state}")

    except Exception as e:
        click.echo(f"Error updating customer: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--backup-path', type=click.Path(file_okay=False), help='Folder containing the customer folders')
@click.option('--default-keep', type=click.IntRange(min=0), help='Keep count for newly discovered customers')
@click.option('--min-age', type=click.IntRange(min=0), help='Minimum backup age in months before deletion')
@click.option('--auto/--no-auto', default=None, help='Enable or disable the daily automatic cleanup')
@click.pass_context
def settings(ctx, backup_path: Optional[str], default_keep: Optional[int],
             min_age: Optional[int], auto: Optional[bool]):
    """Show or change the global settings."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()

        if any(value is not None for value in (backup_path, default_keep, min_age, auto)):
            config_manager.update_settings(
                backup_folder_path=backup_path,
                default_keep_count=default_keep,
                minimum_age_months=min_age,
                auto_cleanup_enabled=auto
            )
            path = config_manager.save()
            click.echo(f"💾 Settings saved to {path}")

        auto_config = config_manager.get_auto_cleanup_config()
        click.echo(f"   Backup folder: {config_manager.get_backup_folder_path() or 'Not configured'}")
        click.echo(f"   Default keep count: {config_manager.get_default_keep_count()}")
        click.echo(f"   Minimum age: {config_manager.get_minimum_age_months()} months")

        if auto_config.get('enabled'):
            next_run = describe_next_run(config_manager.get_last_auto_cleanup(), datetime.now(),
                                         auto_config.get('run_hour', 2))
            click.echo(f"   Automatic cleanup: on ({next_run})")
        else:
            click.echo("   Automatic cleanup: off")

    except Exception as e:
        click.echo(f"Error updating settings: {e}", err=True)
        sys.exit(1)


@cli.command('ignore-file')
@click.pass_context
def ignore_file(ctx):
    """Show the ignore file location and its active patterns."""
    try:
        cleaner = BackupCleaner(ctx.obj.get('config_path'))
        rules = cleaner.load_ignore_rules()

        click.echo(f"Ignore file: {cleaner.ignore_matcher.ignore_file_path}")
        if rules:
            click.echo("Active patterns:")
            for rule in rules:
                click.echo(f"   • {rule.raw_pattern}")
        else:
            click.echo("No active patterns - nothing is ignored")

    except Exception as e:
        click.echo(f"Error reading ignore file: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    config_manager = ConfigManager(ctx.obj.get('config_path'))
    result = config_manager.load_config()

    if result.error:
        click.echo(f"❌ Configuration {result.error.kind.value} ({result.error.source}): "
                   f"{result.error.message}", err=True)
        sys.exit(1)

    click.echo(f"✅ Configuration loaded successfully from {result.path}")

    customers = config_manager.get_customers()
    click.echo(f"\n📊 Configuration Summary:")
    click.echo(f"   Backup folder: {config_manager.get_backup_folder_path() or 'Not configured'}")
    click.echo(f"   Configured customers: {len(customers)}")

    for name, customer_settings in sorted(customers.items()):
        state = "enabled" if customer_settings.get("enabled", True) else "disabled"
        keep = customer_settings.get("keep_count", config_manager.get_default_keep_count())
        click.echo(f"     • {name}: keep {keep}, {state}")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
