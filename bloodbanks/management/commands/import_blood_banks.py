# bloodbanks/management/commands/import_blood_banks.py
"""
Django Management Command to Import Blood Banks from CSV or Excel

USAGE:
    python manage.py import_blood_banks path/to/blood_banks.xlsx

Required columns: Name, Address
Optional columns: Phone, Email, latitude, longitude, Blood Types (comma separated), Emergency
Existing blood banks are matched by name and updated.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from algorithms.blood_compatibility import split_blood_group
from bloodbanks.models import BloodBank
from bloodbanks.utils import cell, read_table, row_coordinates
from donorlink.errors import DonorLinkError

TRUE_VALUES = {'1', 'true', 'yes', 'y'}


class Command(BaseCommand):
    help = 'Import blood banks (with coordinates) from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to the CSV/Excel file')

    def handle(self, *args, **options):
        path = options['path']

        try:
            df = read_table(path)
        except FileNotFoundError:
            self.stdout.write(self.style.ERROR(f'File not found: {path}'))
            return

        required_columns = ['Name', 'Address']
        missing_columns = [col for col in required_columns if col not in df.columns]
        if missing_columns:
            self.stdout.write(self.style.ERROR(f'Missing columns: {", ".join(missing_columns)}'))
            return

        total = len(df)
        created_count = 0
        updated_count = 0
        errors = []

        for index, row in df.iterrows():
            name = cell(row, 'Name')
            try:
                latitude, longitude = row_coordinates(row)
                blood_types = [
                    group.strip() for group in cell(row, 'Blood Types').split(',')
                    if split_blood_group(group.strip())
                ]

                with transaction.atomic():
                    blood_bank, created = BloodBank.objects.update_or_create(
                        name=name,
                        defaults={
                            'address': cell(row, 'Address'),
                            'phone': cell(row, 'Phone'),
                            'email': cell(row, 'Email'),
                            'latitude': latitude,
                            'longitude': longitude,
                            'blood_types_available': blood_types,
                            'is_emergency': cell(row, 'Emergency').lower() in TRUE_VALUES,
                        },
                    )

                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f"[{index + 1}/{total}] Created: {name}"))
                else:
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(f"[{index + 1}/{total}] Updated: {name}"))
                if latitude is None:
                    self.stdout.write(self.style.WARNING(f"    {name} has no coordinates and will not appear in nearby search"))

            except DonorLinkError as e:
                errors.append(f"{name}: {e}")
                self.stdout.write(self.style.ERROR(f"[{index + 1}/{total}] Error: {name}: {e}"))

        self.stdout.write("\n" + "=" * 60)
        self.stdout.write(self.style.SUCCESS('IMPORT SUMMARY'))
        self.stdout.write("=" * 60)
        self.stdout.write(f"Created:  {created_count}")
        self.stdout.write(f"Updated:  {updated_count}")
        self.stdout.write(f"Errors:   {len(errors)}")
        self.stdout.write(f"Total:    {total} rows processed")
        for error in errors:
            self.stdout.write(f"   - {error}")
