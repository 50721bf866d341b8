from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(db_index=True)),
                ('caller_number', models.CharField(max_length=20)),
                ('source', models.CharField(choices=[('simulator', 'simulator'), ('landing_call_click', 'landing call click'), ('landing_form', 'landing form'), ('telephony', 'telephony')], max_length=30)),
                ('status', models.CharField(choices=[('missed', 'missed'), ('answered', 'answered')], max_length=20)),
                ('note', models.TextField(blank=True, null=True)),
                ('owner', models.CharField(blank=True, max_length=100, null=True)),
                ('next_step', models.CharField(blank=True, choices=[('call_attempt', 'call attempt'), ('voicemail_left', 'voicemail left'), ('text_sent', 'text sent'), ('spoke_to_customer', 'spoke to customer'), ('note', 'note')], max_length=30, null=True)),
                ('outcome', models.CharField(blank=True, choices=[('booked', 'booked'), ('reached_no_booking', 'reached no booking'), ('no_answer', 'no answer'), ('already_hired', 'already hired'), ('wrong_number', 'wrong number'), ('call_back_later', 'call back later')], max_length=30, null=True)),
                ('outcome_set_at', models.DateTimeField(blank=True, null=True)),
                ('first_action_at', models.DateTimeField(blank=True, null=True)),
                ('call_sid', models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ('to_number', models.CharField(blank=True, max_length=32, null=True)),
                ('telephony_status', models.CharField(blank=True, max_length=30, null=True)),
                ('direction', models.CharField(blank=True, max_length=30, null=True)),
                ('call_duration_sec', models.IntegerField(blank=True, null=True)),
                ('dial_call_duration_sec', models.IntegerField(blank=True, null=True)),
            ],
            options={
                'db_table': 'call_events',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='LeadActivity',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('kind', models.CharField(db_index=True, max_length=30)),
                ('actor', models.CharField(max_length=20)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('description', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity', to='leads.event')),
            ],
            options={
                'db_table': 'lead_activity',
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['event', '-created_at'], name='idx_activity_event_date')],
            },
        ),
    ]
