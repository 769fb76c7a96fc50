#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pyTron - Command Line Interface
Log hours, print statistics, manage exports and backups, run the dashboard

Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pytron import __version__
from pytron.config import get_config
from pytron.core.models import Category, ValidationError
from pytron.services import ServiceManager, TaskNotFoundError
from pytron.services.data_export import (
    DataImportError, export_log_csv, export_to_json, import_state, load_import_file
)

logger = logging.getLogger(__name__)

# ===== COMMANDS =====

def _services() -> ServiceManager:
    config = get_config()
    config.ensure_directories()
    return ServiceManager(config).initialize_services()

def cmd_serve(args) -> int:
    from pytron.dashboard import run_dashboard
    run_dashboard(host=args.host, port=args.port, reload=args.reload)
    return 0

def cmd_log(args) -> int:
    tracker = _services().tracker
    try:
        entry = tracker.log_hour(args.hour, args.category, args.note or "", date_key=args.date, task_id=args.task)
    except ValidationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except TaskNotFoundError:
        print(f"❌ Task not found: {args.task}", file=sys.stderr)
        return 1
    print(f"✅ {args.date} {args.hour:02d}:00 → {entry.category.label}")
    return 0

def cmd_stats(args) -> int:
    tracker = _services().tracker
    report = tracker.analytics(args.days)
    summary = tracker.today_summary()

    if args.json:
        print(json.dumps({'today': summary, 'range': report}, ensure_ascii=False, indent=2))
        return 0

    metrics = report['metrics']
    print(f"📅 Today ({summary['date']})")
    print(f"   Deep work: {summary['deepWorkHours']}/{summary['targetHours']} h")
    print(f"   Efficiency: {summary['efficiency']}%")
    print(f"   Streak: {summary['streak']} days")
    print(f"📊 Last {args.days} days")
    print(f"   Deep work: {metrics['totalDeepWork']} h")
    print(f"   Average efficiency: {metrics['avgEfficiency']}%")
    print(f"   Productivity score: {report['productivityScore']}")
    for insight in report['insights']:
        print(f"   💡 {insight['message']}")
    return 0

def cmd_badges(args) -> int:
    view = _services().tracker.badges_view()
    for badge in view['badges']:
        mark = "✅" if badge['unlocked'] else f"{badge['progress']:3d}%"
        print(f"{badge['icon']} {badge['name']:<15} {mark:>5}  {badge['description']}")
    summary = view['summary']
    print(f"\n🏆 {summary['unlocked']}/{summary['total']} unlocked")
    return 0

def cmd_export(args) -> int:
    tracker = _services().tracker
    if args.csv:
        path = export_log_csv(tracker.state, Path(args.file))
        if path is None:
            print("Nothing logged yet, no CSV written")
            return 0
    else:
        path = export_to_json(tracker.state, Path(args.file), tracker.now())
    print(f"📤 Exported to {path}")
    return 0

def cmd_import(args) -> int:
    tracker = _services().tracker
    try:
        imported = import_state(tracker, load_import_file(Path(args.file)))
    except DataImportError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    print(f"📥 Imported: {', '.join(imported)}")
    return 0

def cmd_backup(args) -> int:
    services = _services()
    manager = services.backup_manager
    if manager is None:
        print("❌ Backups are disabled (PYTRON_BACKUP_BEFORE_IMPORT=false)", file=sys.stderr)
        return 1

    if args.list:
        for backup in manager.list_backups():
            print(f"{backup['name']}  {backup['size_kb']} KB  {backup['created']}")
        return 0

    if args.restore:
        if not manager.restore_backup(manager.backup_dir / args.restore):
            print(f"❌ Could not restore {args.restore}", file=sys.stderr)
            return 1
        print(f"♻️ Restored {args.restore}")
        return 0

    path = manager.create_backup()
    print(f"💾 Backup created: {path}" if path else "Nothing to back up")
    return 0

# ===== PARSER =====

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pytron', description='pyTron hourly time tracker')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--log-file', help='Also write logs to a rotating file')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the dashboard')
    serve.add_argument('--host', help='Host to bind')
    serve.add_argument('--port', type=int, help='Port to bind')
    serve.add_argument('--reload', action='store_true', help='Auto-reload on code changes')
    serve.set_defaults(func=cmd_serve)

    log = subparsers.add_parser('log', help='Log one hour')
    log.add_argument('date', help='YYYY-MM-DD')
    log.add_argument('hour', type=int, help='0-23')
    log.add_argument('category', type=str.upper, choices=[c.value for c in Category])
    log.add_argument('--note', default='')
    log.add_argument('--task', help='Id of the task worked on')
    log.set_defaults(func=cmd_log)

    stats = subparsers.add_parser('stats', help='Print statistics')
    stats.add_argument('--days', type=int, choices=[7, 30], default=get_config().tracker.default_range_days)
    stats.add_argument('--json', action='store_true', help='Machine-readable output')
    stats.set_defaults(func=cmd_stats)

    badges = subparsers.add_parser('badges', help='List badges and progress')
    badges.set_defaults(func=cmd_badges)

    export = subparsers.add_parser('export', help='Export all data')
    export.add_argument('file')
    export.add_argument('--csv', action='store_true', help='Export the hourly log as CSV')
    export.set_defaults(func=cmd_export)

    import_parser = subparsers.add_parser('import', help='Import an exported JSON file')
    import_parser.add_argument('file')
    import_parser.set_defaults(func=cmd_import)

    backup = subparsers.add_parser('backup', help='Create, list or restore backups')
    backup.add_argument('--list', action='store_true')
    backup.add_argument('--restore', metavar='NAME')
    backup.set_defaults(func=cmd_backup)

    return parser

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config()
    config.configure_logging()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.log_file:
        config.add_log_file(Path(args.log_file), level=logging.DEBUG if args.verbose else logging.INFO)

    return args.func(args)

if __name__ == "__main__":
    sys.exit(main())
