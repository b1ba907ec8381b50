import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Complaint",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("is_anonymous", models.BooleanField(default=False, verbose_name="Anonymous")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("description", models.TextField(verbose_name="Description")),
                ("category", models.CharField(choices=[("streetlight", "Streetlight"), ("water_supply", "Water Supply"), ("road_potholes", "Road Potholes"), ("garbage", "Garbage"), ("other", "Other")], db_index=True, max_length=20, verbose_name="Category")),
                ("status", models.CharField(choices=[("pending", "Pending"), ("in_progress", "In Progress"), ("resolved", "Resolved")], db_index=True, default="pending", max_length=20, verbose_name="Current Status")),
                ("remarks", models.TextField(blank=True, default="", verbose_name="Administrator Remarks")),
                ("attachments", models.JSONField(blank=True, default=list, verbose_name="Attachment URIs")),
                ("latitude", models.FloatField(blank=True, null=True, verbose_name="Latitude")),
                ("longitude", models.FloatField(blank=True, null=True, verbose_name="Longitude")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="complaints", to=settings.AUTH_USER_MODEL, verbose_name="Filed By")),
            ],
            options={
                "verbose_name": "Complaint",
                "verbose_name_plural": "Complaints",
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["status", "category"], name="complaint_status_category_idx")],
            },
        ),
        migrations.CreateModel(
            name="ComplaintStatusLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("from_status", models.CharField(choices=[("pending", "Pending"), ("in_progress", "In Progress"), ("resolved", "Resolved")], max_length=20, verbose_name="Previous Status")),
                ("to_status", models.CharField(choices=[("pending", "Pending"), ("in_progress", "In Progress"), ("resolved", "Resolved")], max_length=20, verbose_name="New Status")),
                ("remarks", models.TextField(blank=True, default="", verbose_name="Remarks At Change")),
                ("changed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="complaint_status_changes", to=settings.AUTH_USER_MODEL, verbose_name="Changed By")),
                ("complaint", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_logs", to="complaints.complaint", verbose_name="Complaint")),
            ],
            options={
                "verbose_name": "Complaint Status Log",
                "verbose_name_plural": "Complaint Status Logs",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
