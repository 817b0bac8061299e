from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


BLOOD_GROUP_CHOICES = [
    ('O_NEGATIVE', 'O-'),
    ('O_POSITIVE', 'O+'),
    ('A_NEGATIVE', 'A-'),
    ('A_POSITIVE', 'A+'),
    ('B_NEGATIVE', 'B-'),
    ('B_POSITIVE', 'B+'),
    ('AB_NEGATIVE', 'AB-'),
    ('AB_POSITIVE', 'AB+'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('blood', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Donor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('DONOR', 'Donor'), ('RECIPIENT', 'Recipient'), ('HOSPITAL', 'Hospital'), ('ADMIN', 'Admin'), ('SUPER_ADMIN', 'Super admin')], default='DONOR', max_length=16)),
                ('account_status', models.CharField(choices=[('ACTIVE', 'Active'), ('INACTIVE', 'Inactive'), ('SUSPENDED', 'Suspended'), ('DELETED', 'Deleted')], default='ACTIVE', max_length=16)),
                ('bloodgroup', models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=12)),
                ('city', models.CharField(max_length=50)),
                ('mobile', models.CharField(blank=True, max_length=20)),
                ('sex', models.CharField(choices=[('M', 'Male'), ('F', 'Female'), ('O', 'Other'), ('U', 'Prefer not to say')], default='U', max_length=1)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('is_available', models.BooleanField(default=True)),
                ('last_notified_at', models.DateTimeField(blank=True, null=True)),
                ('last_donated_at', models.DateField(blank=True, null=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='donor', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Donation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('donation_date', models.DateField()),
                ('units_donated', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('status', models.CharField(choices=[('SCHEDULED', 'Scheduled'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], default='SCHEDULED', max_length=12)),
                ('hemoglobin_level', models.DecimalField(blank=True, decimal_places=1, max_digits=4, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(25)])),
                ('notes', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('blood_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='donations', to='blood.bloodrequest')),
                ('donor', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='donations', to='donor.donor')),
            ],
            options={
                'verbose_name': 'Blood Donation',
                'verbose_name_plural': 'Blood Donations',
                'ordering': ['-donation_date', '-id'],
                'indexes': [models.Index(fields=['blood_request', 'status'], name='donation_request_status_idx')],
            },
        ),
    ]
