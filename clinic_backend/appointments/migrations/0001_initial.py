from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

	initial = True

	dependencies = [
		migrations.swappable_dependency(settings.AUTH_USER_MODEL),
	]

	operations = [
		migrations.CreateModel(
			name="AppointmentType",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("name", models.CharField(max_length=100)),
				("color", models.CharField(blank=True, default="#2E8B57", max_length=7, null=True)),
				("duration_minutes", models.IntegerField(blank=True, null=True)),
				("active", models.BooleanField(default=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
			],
			options={
				"ordering": ["name", "id"],
			},
		),
		migrations.CreateModel(
			name="PracticeHours",
			fields=[
				("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
				("weekday", models.IntegerField(unique=True)),
				("start_time", models.TimeField()),
				("end_time", models.TimeField()),
				("active", models.BooleanField(default=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
			],
			options={
				"ordering": ["weekday", "id"],
				"verbose_name_plural": "practice hours",
			},
		),
		migrations.CreateModel(
			name="Appointment",
			fields=[
				("id", models.AutoField(primary_key=True, serialize=False)),
				("patient_id", models.IntegerField(db_index=True)),
				("start_time", models.DateTimeField()),
				("end_time", models.DateTimeField()),
				(
					"status",
					models.CharField(
						choices=[
							("scheduled", "scheduled"),
							("confirmed", "confirmed"),
							("cancelled", "cancelled"),
							("completed", "completed"),
						],
						default="scheduled",
						max_length=20,
					),
				),
				("notes", models.TextField(blank=True, null=True)),
				("created_at", models.DateTimeField(auto_now_add=True)),
				("updated_at", models.DateTimeField(auto_now=True)),
				(
					"doctor",
					models.ForeignKey(
						on_delete=django.db.models.deletion.PROTECT,
						related_name="appointments",
						to=settings.AUTH_USER_MODEL,
					),
				),
				(
					"type",
					models.ForeignKey(
						blank=True,
						null=True,
						on_delete=django.db.models.deletion.SET_NULL,
						to="appointments.appointmenttype",
					),
				),
			],
			options={
				"ordering": ["-start_time", "-id"],
				"indexes": [models.Index(fields=["doctor", "start_time"], name="appt_doctor_start_idx")],
			},
		),
	]
