"""Sample accounts created by the seed script."""

SAMPLE_USERS = [
    {"username": "nora_test", "email": "nora@example.com", "age": 27, "gender": "female", "weight": 65, "height": 168, "activity_level": 1.55},
    {"username": "tom_admin", "email": "tom@calora-admin.com", "age": 32, "gender": "male", "weight": 78, "height": 180, "activity_level": 1.2, "is_admin": True},
]
