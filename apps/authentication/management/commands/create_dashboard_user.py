from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from apps.authentication.roles import ALL_ROLES, VIEWER

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a dashboard user with a role'

    def add_arguments(self, parser):
        parser.add_argument('--username', type=str, required=True)
        parser.add_argument('--email', type=str, required=True)
        parser.add_argument('--password', type=str, required=True)
        parser.add_argument('--role', type=str, default=VIEWER, choices=ALL_ROLES)

    def handle(self, *args, **options):
        username = options['username']
        email = options['email']
        role = options['role']

        if User.objects.filter(username=username).exists():
            raise CommandError(f'User {username} already exists')

        user = User.objects.create_user(
            username=username,
            email=email,
            password=options['password'],
        )
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)

        self.stdout.write(
            self.style.SUCCESS(f'Successfully created user {username} with role {role}')
        )
