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
    ]

    operations = [
        migrations.CreateModel(
            name='BloodRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('bloodgroup', models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=12)),
                ('units_required', models.PositiveSmallIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ('fulfilled_units', models.PositiveIntegerField(default=0, editable=False)),
                ('urgency', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High'), ('CRITICAL', 'Critical')], default='MEDIUM', max_length=10)),
                ('hospital_name', models.CharField(max_length=100)),
                ('hospital_address', models.CharField(blank=True, max_length=500)),
                ('city', models.CharField(max_length=50)),
                ('contact_person', models.CharField(max_length=50)),
                ('contact_phone', models.CharField(max_length=15)),
                ('required_date', models.DateField()),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('ACTIVE', 'Active'), ('PARTIALLY_FULFILLED', 'Partially fulfilled'), ('FULFILLED', 'Fulfilled'), ('CANCELLED', 'Cancelled'), ('EXPIRED', 'Expired')], default='PENDING', editable=False, max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='blood_requests', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['status', 'required_date'], name='blood_req_status_date_idx'),
                    models.Index(fields=['bloodgroup', 'city'], name='blood_req_group_city_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('MATCH_FOUND', 'Match found'), ('REQUEST_FULFILLED', 'Request fulfilled'), ('REQUEST_EXPIRED', 'Request expired')], max_length=24)),
                ('title', models.CharField(max_length=120)),
                ('message', models.CharField(max_length=500)),
                ('link', models.CharField(blank=True, max_length=200)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('blood_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to='blood.bloodrequest')),
                ('recipient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notifications', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
