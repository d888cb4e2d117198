from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('ledgerman', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='reorderrule',
            name='max_stock',
            field=models.PositiveIntegerField(blank=True, help_text='Overstock alert when a warehouse holds more than this', null=True, verbose_name='Maximum stock'),
        ),
    ]
