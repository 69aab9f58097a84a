# Generated manually for ledger app

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Agent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('phone', models.CharField(max_length=20, unique=True)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('agent_code', models.CharField(max_length=50, unique=True)),
                ('total_shops', models.PositiveIntegerField(default=0)),
                ('total_earnings', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'agents',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='RevenueEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('district', models.CharField(max_length=100)),
                ('date', models.DateField()),
                ('basic_plan_revenue', models.PositiveIntegerField(default=0)),
                ('premium_plan_revenue', models.PositiveIntegerField(default=0)),
                ('featured_plan_revenue', models.PositiveIntegerField(default=0)),
                ('left_bar_plan_revenue', models.PositiveIntegerField(default=0)),
                ('right_bar_plan_revenue', models.PositiveIntegerField(default=0)),
                ('banner_plan_revenue', models.PositiveIntegerField(default=0)),
                ('hero_plan_revenue', models.PositiveIntegerField(default=0)),
                ('basic_plan_count', models.PositiveIntegerField(default=0)),
                ('premium_plan_count', models.PositiveIntegerField(default=0)),
                ('featured_plan_count', models.PositiveIntegerField(default=0)),
                ('left_bar_plan_count', models.PositiveIntegerField(default=0)),
                ('right_bar_plan_count', models.PositiveIntegerField(default=0)),
                ('banner_plan_count', models.PositiveIntegerField(default=0)),
                ('hero_plan_count', models.PositiveIntegerField(default=0)),
                ('total_agent_commission', models.PositiveIntegerField(default=0)),
                ('total_revenue', models.PositiveIntegerField(default=0)),
                ('net_revenue', models.IntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'revenue_entries',
                'ordering': ['-date', 'district'],
                'indexes': [
                    models.Index(fields=['district', '-date'], name='revenue_district_date_idx'),
                    models.Index(fields=['-date'], name='revenue_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('district', 'date'), name='unique_revenue_district_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReconciliationTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('AGENT_TOTALS', 'Recompute agent totals'), ('REVENUE_CREDIT', 'Re-apply revenue credit')], max_length=20)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('RESOLVED', 'Resolved'), ('FAILED', 'Failed')], default='PENDING', max_length=20)),
                ('district', models.CharField(blank=True, max_length=100)),
                ('date', models.DateField(blank=True, null=True)),
                ('plan', models.CharField(blank=True, max_length=20)),
                ('amount', models.PositiveIntegerField(default=0)),
                ('commission', models.PositiveIntegerField(default=0)),
                ('reason', models.TextField(blank=True)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_error', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('agent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='reconciliation_tasks', to='ledger.agent')),
            ],
            options={
                'db_table': 'reconciliation_tasks',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='recon_status_created_idx'),
                ],
            },
        ),
    ]
