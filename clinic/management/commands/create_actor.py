"""
创建（或修改角色）一个可登录的 actor：Django User + Profile
运行: python manage.py create_actor alice --role doctor --password secret
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from clinic_workflow.exceptions import BaseAppException
from clinic.models import Profile, ROLE_CHOICES
from clinic.services import change_role, create_profile


class Command(BaseCommand):
    help = '创建登录用户及其 clinic profile；用户已存在时只修改角色'

    def add_arguments(self, parser):
        parser.add_argument('username')
        parser.add_argument('--role', required=True, choices=[r for r, _ in ROLE_CHOICES])
        parser.add_argument('--password', default=None)

    def handle(self, *args, **options):
        User = get_user_model()
        username = options['username']
        role = options['role']

        try:
            with transaction.atomic():
                user, created = User.objects.get_or_create(username=username)
                if options['password']:
                    user.set_password(options['password'])
                    user.save()

                profile = Profile.objects.filter(user=user).first()
                if profile is None:
                    profile = create_profile(role, user=user)
                elif profile.role != role:
                    profile = change_role(profile.id, role)
        except BaseAppException as e:
            raise CommandError(f'{e.code}: {e.message}')

        action = '已创建' if created else '已更新'
        self.stdout.write(f'{action} {username}: profile={profile.id} role={profile.role}')
