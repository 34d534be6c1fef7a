import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('trips', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Package',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=32, unique=True)),
                ('origin_city', models.CharField(max_length=120)),
                ('origin_address', models.CharField(max_length=255)),
                ('origin_lat', models.FloatField()),
                ('origin_lng', models.FloatField()),
                ('destination_city', models.CharField(max_length=120)),
                ('destination_address', models.CharField(max_length=255)),
                ('destination_lat', models.FloatField()),
                ('destination_lng', models.FloatField()),
                ('receiver_name', models.CharField(max_length=120)),
                ('receiver_phone', models.CharField(max_length=20)),
                ('description', models.TextField(blank=True, default='')),
                ('photos', models.JSONField(blank=True, default=list)),
                ('fee', models.DecimalField(decimal_places=2, max_digits=12)),
                ('payer', models.CharField(choices=[('sender', 'Sender'), ('receiver', 'Receiver')], max_length=10)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('held', 'Held'), ('released', 'Released'), ('refunded', 'Refunded')], default='pending', max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('picked_up', 'Picked Up'), ('in_transit', 'In Transit'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled'), ('disputed', 'Disputed'), ('expired', 'Expired')], default='pending', max_length=20)),
                ('pickup_proof', models.CharField(blank=True, max_length=255, null=True)),
                ('delivery_proof', models.CharField(blank=True, max_length=255, null=True)),
                ('delivery_otp', models.CharField(blank=True, max_length=6, null=True)),
                ('delivery_otp_expires_at', models.DateTimeField(blank=True, null=True)),
                ('dispute_reason', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('accepted_at', models.DateTimeField(blank=True, null=True)),
                ('picked_up_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sent_packages', to=settings.AUTH_USER_MODEL)),
                ('traveller', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='carried_packages', to=settings.AUTH_USER_MODEL)),
                ('trip', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='accepted_packages', to='trips.trip')),
            ],
            options={
                'db_table': 'packages',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TrackingPoint',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lat', models.FloatField()),
                ('lng', models.FloatField()),
                ('timestamp', models.DateTimeField()),
                ('package', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tracking', to='parcels.package')),
            ],
            options={
                'db_table': 'package_tracking_points',
                'ordering': ['timestamp', 'id'],
            },
        ),
        migrations.AddIndex(
            model_name='package',
            index=models.Index(fields=['status', '-created_at'], name='package_status_created_idx'),
        ),
        migrations.AddConstraint(
            model_name='package',
            constraint=models.CheckConstraint(condition=models.Q(('fee__gte', 0)), name='package_fee_non_negative'),
        ),
        migrations.AddConstraint(
            model_name='package',
            constraint=models.CheckConstraint(condition=models.Q(models.Q(('traveller__isnull', True), ('trip__isnull', True)), models.Q(('traveller__isnull', False), ('trip__isnull', False)), _connector='OR'), name='package_traveller_trip_paired'),
        ),
    ]
