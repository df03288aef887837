# donors/management/commands/import_donors.py
"""
Django management command to import donor data from CSV or Excel
Usage: python manage.py import_donors path/to/donors.xlsx

Required columns: first_name, last_name
Optional columns: email, phone_number, blood_group (e.g. "O+"), address,
latitude, longitude, last_donation_date (YYYY-MM-DD), donation_count,
receive_alerts
Donors with an email address are matched on it and updated.
"""

from datetime import datetime

from django.core.management.base import BaseCommand
from django.db import transaction

from algorithms.blood_compatibility import split_blood_group
from algorithms.eligibility import is_cooldown_over
from bloodbanks.utils import cell, read_table, row_coordinates
from donorlink.errors import DonorLinkError, InvalidRequest
from donors.models import DonorProfile

FALSE_VALUES = {'0', 'false', 'no', 'n'}


def parse_donor_row(row):
    """Turn one sheet row into DonorProfile field values."""
    first_name = cell(row, 'first_name')
    last_name = cell(row, 'last_name')
    if not first_name:
        raise InvalidRequest('Missing name')

    blood_type, rh_factor = '', ''
    blood_group = cell(row, 'blood_group')
    if blood_group:
        parsed = split_blood_group(blood_group.replace(' ', ''))
        if parsed is None:
            raise InvalidRequest('Invalid blood type', detail=blood_group)
        blood_type, rh_factor = parsed

    last_donation_date = None
    raw_date = cell(row, 'last_donation_date')
    if raw_date:
        try:
            last_donation_date = datetime.strptime(raw_date[:10], '%Y-%m-%d').date()
        except ValueError:
            raise InvalidRequest('Invalid date', detail=raw_date)

    raw_count = cell(row, 'donation_count', '0') or '0'
    try:
        donation_count = int(float(raw_count))
    except ValueError:
        raise InvalidRequest('Invalid donation count', detail=raw_count)

    latitude, longitude = row_coordinates(row)

    return {
        'first_name': first_name,
        'last_name': last_name,
        'email': cell(row, 'email'),
        'phone': cell(row, 'phone_number'),
        'address': cell(row, 'address'),
        'blood_type': blood_type,
        'rh_factor': rh_factor,
        'latitude': latitude,
        'longitude': longitude,
        'last_donation_date': last_donation_date,
        'donation_count': max(donation_count, 0),
        'is_eligible': is_cooldown_over(last_donation_date),
        'receive_donation_alerts': cell(row, 'receive_alerts', 'yes').lower() not in FALSE_VALUES,
    }


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the CSV/Excel file')

    def handle(self, *args, **options):
        path = options['path']

        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        try:
            df = read_table(path)
        except FileNotFoundError:
            self.stdout.write(self.style.ERROR(f'File not found: {path}'))
            return

        self.stdout.write(f'Found {len(df)} rows')

        missing_columns = [col for col in ('first_name', 'last_name') if col not in df.columns]
        if missing_columns:
            self.stdout.write(self.style.ERROR(f'Missing columns: {", ".join(missing_columns)}'))
            return

        imported_count = 0
        updated_count = 0
        skipped_count = 0

        for index, row in df.iterrows():
            try:
                values = parse_donor_row(row)
                email = values.pop('email')

                with transaction.atomic():
                    if email:
                        donor, created = DonorProfile.objects.update_or_create(
                            email=email, defaults=values
                        )
                    else:
                        donor, created = DonorProfile.objects.create(**values), True

            except DonorLinkError as e:
                skipped_count += 1
                self.stdout.write(self.style.ERROR(f'✗ Row {index + 2}: {e}'))
                continue

            if created:
                imported_count += 1
                self.stdout.write(f'✓ Created: {donor.full_name} ({donor.blood_group or "?"})')
            else:
                updated_count += 1
                self.stdout.write(f'↻ Updated: {donor.full_name} ({donor.blood_group or "?"})')

        self.stdout.write(
            self.style.SUCCESS(
                f'\n✅ Import complete!\n'
                f'Created: {imported_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}\n'
                f'Total: {imported_count + updated_count}'
            )
        )
