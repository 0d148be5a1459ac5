# Prune Login Codes Management Command
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.services import prune_login_codes_queryset


class Command(BaseCommand):
    help = 'Deletes sign-in codes that have expired or were already used.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would be deleted without deleting anything.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Number of codes deleted per query.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size < 1:
            raise CommandError('--batch-size must be a positive integer.')

        now = timezone.now()
        stale = prune_login_codes_queryset(now)
        total = stale.count()

        if dry_run:
            self.stdout.write(f'  [DRY-RUN] {total} login code(s) would be deleted.')
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
            return

        deleted = 0
        while True:
            ids = list(prune_login_codes_queryset(now).values_list('id', flat=True)[:batch_size])
            if not ids:
                break
            count, _ = prune_login_codes_queryset(now).filter(id__in=ids).delete()
            deleted += count
            self.stdout.write(f'Deleted {deleted} of {total} login codes...')

        self.stdout.write(self.style.SUCCESS(f'Pruned {deleted} login code(s).'))
