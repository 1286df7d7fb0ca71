# Generated migration for the worksheet catalog

from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.CharField(help_text="Catalog id, e.g. 'class-3-maths-workbook'", max_length=120, primary_key=True, serialize=False)),
                ('title', models.CharField(help_text='Display name for customers', max_length=200)),
                ('description', models.TextField(blank=True)),
                ('subject', models.CharField(choices=[('maths', 'Maths'), ('english', 'English'), ('science', 'Science'), ('evs', 'EVS'), ('exams', 'Exam Practice'), ('other', 'Other')], default='other', max_length=20)),
                ('class_level', models.CharField(blank=True, help_text="Class/grade label, e.g. 'class-3'", max_length=20)),
                ('price', models.DecimalField(decimal_places=2, help_text='Base price in INR before regional tiering', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('storage_key', models.CharField(blank=True, help_text='Object store key of the downloadable file', max_length=255)),
                ('is_active', models.BooleanField(default=True, help_text='Whether product is available for purchase')),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'db_table': 'products',
                'ordering': ('sort_order', 'title'),
                'indexes': [
                    models.Index(fields=['subject', 'is_active'], name='products_subject_active_idx'),
                    models.Index(fields=['class_level'], name='products_class_level_idx'),
                ],
            },
        ),
    ]
