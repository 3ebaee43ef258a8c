"""Command-line interface for disk health monitor."""

import json
import logging
import logging.handlers
import sys
import click
from typing import Optional

from .core.models import Severity
from .core.monitor import DiskHealthMonitor
from .config.config_manager import ConfigManager


EXIT_CRITICAL = 2


def setup_logging(level: str, log_file: Optional[str] = None,
                  max_size_mb: int = 10, backup_count: int = 5):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler on stderr so `status --output json` stays parseable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Add file handler if specified
    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_size_mb * 1024 * 1024,
                backupCount=backup_count
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level')
@click.option('--log-file',
              help='Log file path')
@click.option('--log-max-size-mb', default=10, show_default=True,
              help='Rotate the log file at this size')
@click.option('--log-backup-count', default=5, show_default=True,
              help='Rotated log files to keep')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: str, log_file: Optional[str],
        log_max_size_mb: int, log_backup_count: int):
    """Disk Health Monitor - SMART, usage and RAID alerts for this host."""

    # Ensure context exists
    ctx.ensure_object(dict)

    # Set up logging first
    setup_logging(log_level, log_file, log_max_size_mb, log_backup_count)

    # Store configuration path
    ctx.obj['config_path'] = config_path


@cli.command()
@click.option('--test', 'test_mode', is_flag=True,
              help='Always send the report and leave the stored state untouched')
@click.option('--force', '-f', '--f', 'force', is_flag=True,
              help='Always send the report and store the new state')
@click.option('--always-exit-zero', is_flag=True,
              help='Exit 0 even when the host is CRITICAL')
@click.pass_context
def check(ctx, test_mode: bool, force: bool, always_exit_zero: bool):
    """Check disks and notify when the problem set changed."""
    try:
        monitor = DiskHealthMonitor(ctx.obj.get('config_path'))
        results = monitor.run_check(test_mode=test_mode, force=force)
    except Exception as e:
        click.echo(f"Error during disk health check: {e}", err=True)
        sys.exit(1)

    severity = results['severity']
    decision = results['decision']

    click.echo(f"{severity.emoji} Overall status: {severity.name}")
    if decision.send:
        if results['sent']:
            click.echo(f"  📨 Report sent ({decision.reason})")
        else:
            click.echo(f"  ⚠️  Report not delivered ({decision.reason})")
    else:
        click.echo(f"  💤 No notification ({decision.reason})")

    if severity == Severity.CRITICAL and not always_exit_zero:
        sys.exit(EXIT_CRITICAL)


@cli.command()
@click.option('--output', '-o', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def status(ctx, output: str):
    """Show current disk health without notifying or storing state."""
    try:
        monitor = DiskHealthMonitor(ctx.obj.get('config_path'))
        report = monitor.collect()
    except Exception as e:
        click.echo(f"Error collecting disk health: {e}", err=True)
        sys.exit(1)

    if output == 'json':
        json_results = {
            'hostname': report.hostname,
            'timestamp': report.timestamp.isoformat(),
            'severity': report.overall_severity.name,
            'disks': {},
            'usage': [],
            'raid': []
        }

        for name, obs in sorted(report.disks.items()):
            json_results['disks'][name] = {
                'path': obs.device.path,
                'media_type': obs.device.media_type.name,
                'readable': obs.readable,
                'health_passed': obs.health_passed,
                'temperature': obs.temperature,
                'reallocated_sectors': obs.reallocated_sectors,
                'pending_sectors': obs.pending_sectors,
                'uncorrectable_sectors': obs.uncorrectable_sectors,
                'severity': obs.severity.name,
                'reasons': obs.reasons,
                'error_message': obs.error_message
            }

        for usage in report.usage:
            json_results['usage'].append({
                'source': usage.source,
                'mountpoint': usage.mountpoint,
                'fstype': usage.fstype,
                'percent': usage.percent,
                'severity': usage.severity.name
            })

        for array in report.raid_arrays:
            json_results['raid'].append({
                'name': array.name,
                'state': array.state,
                'bitmap': array.bitmap,
                'degraded': array.degraded,
                'severity': array.severity.name
            })

        click.echo(json.dumps(json_results, indent=2))
    else:
        click.echo(monitor.generate_report(report))


@cli.command()
@click.pass_context
def selftest(ctx):
    """Start a short SMART self-test on every monitored device."""
    try:
        monitor = DiskHealthMonitor(ctx.obj.get('config_path'))
        results = monitor.run_selftests()
    except Exception as e:
        click.echo(f"Error starting self-tests: {e}", err=True)
        sys.exit(1)

    if not results:
        click.echo("No devices to test")
        return

    failed = 0
    for result in results:
        if result['started']:
            click.echo(f"✅ {result['device']}: {result['message']}")
        else:
            failed += 1
            click.echo(f"❌ {result['device']}: {result['message']}")

    if failed:
        sys.exit(1)


@cli.command()
@click.pass_context
def test_telegram(ctx):
    """Send a test message to verify Telegram configuration."""
    try:
        monitor = DiskHealthMonitor(ctx.obj.get('config_path'))
        reporter = monitor.telegram_reporter

        # Validate configuration first
        errors = reporter.validate_configuration()
        if errors:
            click.echo("❌ Telegram configuration errors:")
            for error in errors:
                click.echo(f"   • {error}")
            sys.exit(1)

        click.echo("Sending test message...")

        if reporter.send_test_message():
            click.echo("✅ Test message sent successfully!")
            click.echo(f"   Chat: {reporter.chat_id}")
        else:
            click.echo("❌ Failed to send test message", err=True)
            sys.exit(1)

    except Exception as e:
        click.echo(f"Error sending test message: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    try:
        config_manager = ConfigManager(ctx.obj.get('config_path'))
        config_manager.load_config()
        settings = config_manager.get_settings()

        click.echo("✅ Configuration loaded successfully")

        thresholds = settings.thresholds
        click.echo(f"\n📊 Configuration Summary:")
        if settings.include_devices:
            click.echo(f"   Devices: {', '.join(settings.include_devices)}")
        else:
            click.echo("   Devices: auto-discover")
        for name, options in sorted(settings.device_options.items()):
            click.echo(f"     {name}: smartctl {' '.join(options)}")
        click.echo(f"   HDD temperature: warn {thresholds.hdd_temp_warn}°C, critical {thresholds.hdd_temp_crit}°C")
        click.echo(f"   SSD temperature: warn {thresholds.ssd_temp_warn}°C, critical {thresholds.ssd_temp_crit}°C")
        click.echo(f"   Usage: warn {thresholds.usage_warn:g}%, critical {thresholds.usage_crit:g}%")
        click.echo(f"   State file: {settings.state_path} ({settings.state_format})")

        telegram = settings.telegram
        if telegram.bot_token and telegram.chat_id:
            click.echo(f"   📨 Telegram chat: {telegram.chat_id}")
        else:
            click.echo("   📨 Telegram: Not configured (reports will not be sent)")

    except Exception as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
