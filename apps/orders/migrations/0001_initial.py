# Generated migration for purchases

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Purchase',
            fields=[
                ('id', models.CharField(help_text="'<payment_id>_<product_id>'", max_length=255, primary_key=True, serialize=False)),
                ('email', models.EmailField(db_index=True, max_length=254)),
                ('user_id', models.CharField(blank=True, db_index=True, max_length=128, null=True)),
                ('product_id', models.CharField(max_length=120)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('payment_id', models.CharField(max_length=128)),
                ('order_id', models.CharField(max_length=128)),
                ('payment_method', models.CharField(choices=[('gateway', 'Payment Gateway'), ('free_coupon', 'Free with Coupon')], default='gateway', max_length=20)),
                ('order_currency', models.CharField(max_length=3)),
                ('order_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('coupon_code', models.CharField(blank=True, max_length=24, null=True)),
                ('coupon_id', models.CharField(blank=True, max_length=64, null=True)),
                ('coupon_discount_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('purchased_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Purchase',
                'verbose_name_plural': 'Purchases',
                'db_table': 'purchases',
                'ordering': ('-purchased_at',),
                'indexes': [
                    models.Index(fields=['payment_id'], name='purchases_payment_idx'),
                ],
            },
        ),
    ]
