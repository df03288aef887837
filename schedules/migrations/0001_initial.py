import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('bloodbanks', '0001_initial'),
        ('donors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DonationSchedule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('scheduled_date', models.DateField(db_index=True)),
                ('time_slot', models.CharField(choices=[('08:00-09:00', '8:00 AM - 9:00 AM'), ('09:00-10:00', '9:00 AM - 10:00 AM'), ('10:00-11:00', '10:00 AM - 11:00 AM'), ('11:00-12:00', '11:00 AM - 12:00 PM'), ('12:00-13:00', '12:00 PM - 1:00 PM'), ('13:00-14:00', '1:00 PM - 2:00 PM'), ('14:00-15:00', '2:00 PM - 3:00 PM'), ('15:00-16:00', '3:00 PM - 4:00 PM'), ('16:00-17:00', '4:00 PM - 5:00 PM'), ('17:00-18:00', '5:00 PM - 6:00 PM')], max_length=11)),
                ('status', models.CharField(choices=[('SCHEDULED', 'Scheduled'), ('CONFIRMED', 'Confirmed'), ('CANCELLED', 'Cancelled'), ('COMPLETED', 'Completed'), ('NO_SHOW', 'No Show')], default='SCHEDULED', max_length=10)),
                ('donation_type', models.CharField(choices=[('Whole Blood', 'Whole Blood'), ('Plasma', 'Plasma'), ('Platelets', 'Platelets'), ('Double Red Cells', 'Double Red Cells'), ('Power Red', 'Power Red')], default='Whole Blood', max_length=20)),
                ('purpose', models.CharField(choices=[('Regular Donation', 'Regular Donation'), ('Emergency Request', 'Emergency Request'), ('Blood Drive', 'Blood Drive'), ('Replacement Donation', 'Replacement Donation'), ('Directed Donation', 'Directed Donation')], default='Regular Donation', max_length=25)),
                ('contact_method', models.CharField(choices=[('Phone', 'Phone'), ('Email', 'Email'), ('SMS', 'SMS'), ('Mobile App', 'Mobile App')], default='Email', max_length=10)),
                ('send_reminders', models.BooleanField(default=True)),
                ('reminder_status', models.CharField(choices=[('NOT_SENT', 'Not Sent'), ('SENT', 'Sent'), ('FAILED', 'Failed')], default='NOT_SENT', max_length=8)),
                ('reminder_sent_at', models.DateTimeField(blank=True, null=True)),
                ('confirmed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True)),
                ('special_instructions', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('estimated_duration', models.PositiveIntegerField(default=60, help_text='Minutes')),
                ('is_recurring', models.BooleanField(default=False)),
                ('recurring_pattern', models.CharField(blank=True, choices=[('weekly', 'Weekly'), ('monthly', 'Monthly'), ('every-2-months', 'Every 2 Months'), ('every-3-months', 'Every 3 Months'), ('every-6-months', 'Every 6 Months'), ('yearly', 'Yearly')], max_length=15)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('blood_bank', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='bloodbanks.bloodbank')),
                ('completed_donation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='schedules', to='donors.donation')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedules', to='donors.donorprofile')),
                ('parent_schedule', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='occurrences', to='schedules.donationschedule')),
                ('scheduled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='scheduled_donations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Donation Schedule',
                'verbose_name_plural': 'Donation Schedules',
                'ordering': ['-scheduled_date', 'time_slot'],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status__in', ['SCHEDULED', 'CONFIRMED'])), fields=('blood_bank', 'scheduled_date', 'time_slot'), name='unique_active_slot')],
            },
        ),
    ]
