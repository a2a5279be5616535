from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "account_id",
                    models.CharField(
                        db_index=True,
                        help_text="Identity platform user id, e.g. 'user-test-xxx'",
                        max_length=255,
                        unique=True,
                    ),
                ),
                ("email", models.EmailField(db_index=True, max_length=254, unique=True)),
                ("full_name", models.CharField(blank=True, max_length=255)),
                ("avatar", models.URLField(blank=True, max_length=500)),
                (
                    "auth_method",
                    models.CharField(
                        choices=[("otp", "Email OTP"), ("passkey", "Passkey")],
                        default="otp",
                        max_length=10,
                    ),
                ),
                ("has_passkey", models.BooleanField(default=False)),
                (
                    "passkey_count",
                    models.PositiveIntegerField(default=0, help_text="Number of successful passkey enrollments"),
                ),
                (
                    "credential_id",
                    models.TextField(blank=True, default="", help_text="Base64url credential id from the authenticator"),
                ),
                (
                    "credential_public_key",
                    models.TextField(blank=True, default="", help_text="Base64url COSE public key"),
                ),
                (
                    "counter",
                    models.PositiveBigIntegerField(default=0, help_text="Signature counter for replay detection"),
                ),
                ("current_challenge", models.CharField(blank=True, max_length=255, null=True)),
                ("current_auth_challenge", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
