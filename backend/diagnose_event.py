"""
Troubleshoot a failing sheet export from the command line.

Usage:
    python diagnose_event.py event.json [registrations.json]

The event file may also hold {"eventData": ..., "registrations": [...]}.
Exits with status 1 when any issue is found.
"""
import argparse
import json
import sys

from core.validators import diagnose_event
from sheets.sheets_utils import SheetDataError, prepare_sheet_data


def load_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def run(event, registrations, out=None) -> int:
    out = out or sys.stdout
    print(f"Event: {event.get('title', 'Unknown Event') if isinstance(event, dict) else 'Unknown Event'}", file=out)
    print(f"Registrations: {len(registrations) if isinstance(registrations, list) else 0}", file=out)
    print('=' * 60, file=out)

    issues = diagnose_event(event, registrations)
    if issues:
        print("Issues found:", file=out)
        for issue in issues:
            print(f"  - {issue}", file=out)
    else:
        print("Event and registration data look valid", file=out)

    print('-' * 60, file=out)
    try:
        sheet_data = prepare_sheet_data(event, registrations if registrations is not None else [])
    except SheetDataError as e:
        print(f"Sheet data preparation failed: {e}", file=out)
        return 1

    print(f"Sheet data prepared: {sheet_data.column_count} columns, {len(sheet_data.rows)} rows", file=out)
    print(f"Headers: {', '.join(sheet_data.headers)}", file=out)
    if sheet_data.rows:
        print("Sample row:", file=out)
        for header, value in zip(sheet_data.headers, sheet_data.rows[0]):
            print(f"  {header}: {value}", file=out)

    return 1 if issues else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Diagnose event data before exporting it to Google Sheets')
    parser.add_argument('event_file', help='JSON file with the event (or a full create request body)')
    parser.add_argument('registrations_file', nargs='?', help='JSON file with the registrations list')
    args = parser.parse_args(argv)

    try:
        event = load_json(args.event_file)
        registrations = load_json(args.registrations_file) if args.registrations_file else None
    except (OSError, json.JSONDecodeError) as e:
        print(f"Could not read input: {e}", file=sys.stderr)
        return 1

    if isinstance(event, dict) and 'eventData' in event:
        if registrations is None:
            registrations = event.get('registrations')
        event = event['eventData']

    return run(event, registrations if registrations is not None else [])


if __name__ == '__main__':
    sys.exit(main())
