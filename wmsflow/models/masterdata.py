"""
Master data — organizations, warehouses, locations, partners, goods.

Records are never deleted once referenced; they are deactivated through
``wmsflow.services.guards`` which refuses deactivation while dependent
stock or documents exist.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from wmsflow.models.enums import RecordStatus, TrackingType, WarehouseType


class MasterRecord(models.Model):
    """Common fields of every master-data record."""

    status = models.CharField(
        max_length=10,
        choices=RecordStatus.choices,
        default=RecordStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE


class Organization(MasterRecord):
    code = models.CharField(max_length=15, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=180, verbose_name=_('Name'))
    address = models.CharField(max_length=255, blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    email = models.EmailField(blank=True, default='')

    class Meta:
        verbose_name = _('Organization')
        verbose_name_plural = _('Organizations')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Branch(MasterRecord):
    code = models.CharField(max_length=15, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=180, verbose_name=_('Name'))
    organization = models.ForeignKey(
        Organization,
        on_delete=models.PROTECT,
        related_name='branches',
        verbose_name=_('Organization'),
    )
    address = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        verbose_name = _('Branch')
        verbose_name_plural = _('Branches')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Warehouse(MasterRecord):
    code = models.CharField(max_length=15, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=120, verbose_name=_('Name'))
    branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='warehouses',
        verbose_name=_('Branch'),
    )
    warehouse_type = models.CharField(
        max_length=10,
        choices=WarehouseType.choices,
        default=WarehouseType.CENTRAL,
        verbose_name=_('Type'),
    )
    capacity = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Location(MasterRecord):
    """
    A bin/slot inside a warehouse. Codes are unique per warehouse.

    The ``is_default`` location receives stock from receipt lines that do
    not name a put-away location.
    """

    warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        related_name='locations',
        verbose_name=_('Warehouse'),
    )
    code = models.CharField(max_length=30, verbose_name=_('Code'))
    name = models.CharField(max_length=120, verbose_name=_('Name'))
    is_default = models.BooleanField(
        default=False,
        verbose_name=_('Default put-away location'),
    )
    allowed_goods_types = models.JSONField(default=list, blank=True)
    blocked_goods_types = models.JSONField(default=list, blank=True)

    class Meta:
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['warehouse__code', 'code']
        constraints = [
            models.UniqueConstraint(
                fields=['warehouse', 'code'],
                name='unique_location_code_per_warehouse',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.warehouse.code}/{self.code}"


class Partner(MasterRecord):
    code = models.CharField(max_length=20, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=180, verbose_name=_('Name'))
    partner_types = models.JSONField(
        default=list,
        blank=True,
        verbose_name=_('Partner types'),
        help_text=_('Any of: Supplier, Customer, 3PL, Internal'),
    )
    tax_code = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        verbose_name = _('Partner')
        verbose_name_plural = _('Partners')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class GoodsType(MasterRecord):
    code = models.CharField(max_length=15, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=180, verbose_name=_('Name'))
    description = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = _('Goods Type')
        verbose_name_plural = _('Goods Types')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Uom(MasterRecord):
    code = models.CharField(max_length=10, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=60, verbose_name=_('Name'))
    base_uom = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='alternates',
        verbose_name=_('Base UoM'),
    )
    conv_factor = models.DecimalField(
        max_digits=12,
        decimal_places=6,
        null=True,
        blank=True,
        verbose_name=_('Conversion factor'),
    )

    class Meta:
        verbose_name = _('Unit of Measure')
        verbose_name_plural = _('Units of Measure')
        ordering = ['code']

    def __str__(self) -> str:
        return self.code


class ModelGoods(MasterRecord):
    """
    A stockable item.

    ``tracking_type`` is copied onto every document line when the line is
    created; changing it later does not affect existing lines.
    """

    code = models.CharField(max_length=30, unique=True, verbose_name=_('Code'))
    name = models.CharField(max_length=180, verbose_name=_('Name'))
    goods_type = models.ForeignKey(
        GoodsType,
        on_delete=models.PROTECT,
        related_name='model_goods',
        verbose_name=_('Goods Type'),
    )
    base_uom = models.ForeignKey(
        Uom,
        on_delete=models.PROTECT,
        related_name='model_goods',
        verbose_name=_('Base UoM'),
    )
    tracking_type = models.CharField(
        max_length=10,
        choices=TrackingType.choices,
        default=TrackingType.NONE,
        verbose_name=_('Tracking'),
    )
    low_stock_threshold = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
    )
    description = models.TextField(blank=True, default='')

    class Meta:
        verbose_name = _('Model Goods')
        verbose_name_plural = _('Model Goods')
        ordering = ['code']

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"
