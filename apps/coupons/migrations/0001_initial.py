# Generated migration for the coupon engine

import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Coupon',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('code', models.CharField(db_index=True, help_text='Normalized uppercase code (A-Z, 0-9, -)', max_length=24)),
                ('description', models.CharField(blank=True, help_text='Shown to customers at checkout', max_length=240)),
                ('discount_type', models.CharField(choices=[('percentage', 'Percentage'), ('flat', 'Flat'), ('free_item', 'Free Item')], default='percentage', max_length=20)),
                ('discount_value', models.DecimalField(decimal_places=2, default=0, help_text='Percent (0-100) or flat amount in order currency; ignored for free_item', max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ('is_active', models.BooleanField(default=True)),
                ('total_usage_limit', models.PositiveIntegerField(blank=True, help_text='Empty means unlimited', null=True)),
                ('per_user_limit', models.PositiveIntegerField(blank=True, help_text='Empty means unlimited', null=True)),
                ('per_user_mode', models.CharField(choices=[('one_item', 'One Item'), ('one_order', 'One Order'), ('multiple', 'Multiple'), ('unlimited', 'Unlimited')], default='unlimited', max_length=20)),
                ('min_order_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('first_purchase_only', models.BooleanField(default=False)),
                ('visibility_scope', models.CharField(choices=[('public', 'Public'), ('user_specific', 'User Specific'), ('hidden', 'Hidden')], default='hidden', max_length=20)),
                ('user_email', models.EmailField(blank=True, help_text='Bound customer for user_specific coupons', max_length=254, null=True)),
                ('start_date', models.DateTimeField(blank=True, null=True)),
                ('expiry_date', models.DateTimeField(blank=True, null=True)),
                ('used_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.EmailField(blank=True, max_length=254, null=True)),
                ('disabled_at', models.DateTimeField(blank=True, null=True)),
                ('disabled_by', models.EmailField(blank=True, max_length=254, null=True)),
                ('usage_reset_at', models.DateTimeField(blank=True, help_text='Per-user usage before this instant is ignored', null=True)),
                ('usage_reset_by', models.EmailField(blank=True, max_length=254, null=True)),
                ('usage_reset_reason', models.CharField(blank=True, max_length=64, null=True)),
            ],
            options={
                'verbose_name': 'Coupon',
                'verbose_name_plural': 'Coupons',
                'db_table': 'coupons',
                'ordering': ('-created_at',),
                'indexes': [
                    models.Index(fields=['is_active', 'visibility_scope'], name='coupons_active_scope_idx'),
                    models.Index(fields=['user_email'], name='coupons_user_email_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('code',), name='unique_active_coupon_code'),
                    models.CheckConstraint(condition=models.Q(('total_usage_limit__isnull', True), ('used_count__lte', models.F('total_usage_limit')), _connector='OR'), name='coupon_used_count_within_limit'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CouponUsage',
            fields=[
                ('id', models.CharField(help_text="'<payment_id>_<coupon_id>'", max_length=255, primary_key=True, serialize=False)),
                ('code', models.CharField(max_length=24)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('user_id', models.CharField(blank=True, max_length=128, null=True)),
                ('payment_id', models.CharField(max_length=128)),
                ('order_id', models.CharField(blank=True, max_length=128, null=True)),
                ('order_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('currency', models.CharField(default='INR', max_length=3)),
                ('item_quantity_used', models.PositiveIntegerField(default=1)),
                ('status', models.CharField(choices=[('applied', 'Applied'), ('reversed', 'Reversed')], default='applied', max_length=20)),
                ('used_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('coupon', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='usages', to='coupons.coupon')),
            ],
            options={
                'verbose_name': 'Coupon Usage',
                'verbose_name_plural': 'Coupon Usages',
                'db_table': 'coupon_usages',
                'ordering': ('-used_at',),
                'indexes': [
                    models.Index(fields=['coupon', 'email', 'status'], name='coupon_usage_user_idx'),
                    models.Index(fields=['coupon', '-used_at'], name='coupon_usage_recent_idx'),
                ],
            },
        ),
    ]
