from typing import Any, Callable, Dict, List, Mapping, Optional

from structlog.stdlib import BoundLogger

from payer_service.commons.core.errors import (
    PaymentLockAcquireError,
    PaymentLockReleaseError,
)
from payer_service.commons.providers.stripe.stripe_models import MAX_LIST_LIMIT
from payer_service.customer.core.events import (
    CustomerCreated,
    CustomerEvent,
    DefaultSourceSet,
    EventSink,
    PaymentMethodAdded,
    SourceAdded,
    SourceDeleted,
)
from payer_service.customer.core.exceptions import (
    CustomerCreationLockError,
    CustomerError,
    CustomerErrorCode,
    RemoteError,
    ValidationError,
)
from payer_service.customer.core.gateway import GatewayError, PaymentGateway
from payer_service.customer.core.interfaces import (
    CustomerCreationLock,
    PaymentTokenStore,
    SourceCache,
    UserStore,
)
from payer_service.customer.core.model import (
    PaymentSource,
    build_payment_method_token,
    build_source_token,
)
from payer_service.customer.core.types import classify_source

GUEST_USER_ID = 0

MetadataProvider = Callable[[int], Mapping[str, str]]


def sources_cache_key(customer_id: str) -> str:
    return f"sources:{customer_id}"


def customer_cache_key(customer_id: str) -> str:
    return f"customer:{customer_id}"


def _customer_error_context(error: BaseException) -> Optional[CustomerError]:
    context = error.__context__
    while context is not None and not isinstance(context, CustomerError):
        context = context.__context__
    return context


class CustomerSourceManager:
    """
    Binds a local user to a stripe customer and manages the payment sources saved on it.

    One instance serves one request for one local user. A user_id of 0 is a guest, whose
    stripe customer id is never persisted.
    """

    customer_id: str
    customer_data: Optional[Dict[str, Any]]

    def __init__(
        self,
        *,
        user_id: int,
        gateway: PaymentGateway,
        user_store: UserStore,
        token_store: PaymentTokenStore,
        cache: SourceCache,
        event_sink: EventSink,
        creation_lock: CustomerCreationLock,
        log: BoundLogger,
        metadata_provider: Optional[MetadataProvider] = None,
        page_size: int = MAX_LIST_LIMIT,
    ):
        self.user_id = user_id
        self.gateway = gateway
        self.user_store = user_store
        self.token_store = token_store
        self.cache = cache
        self.event_sink = event_sink
        self.creation_lock = creation_lock
        self.log = log.bind(user_id=user_id)
        self.metadata_provider = metadata_provider
        self.page_size = page_size

        self.customer_id = ""
        self.customer_data = None
        # billing email of a guest, reused when its customer is re-created
        self.fallback_email = ""

    @property
    def is_guest(self) -> bool:
        return self.user_id == GUEST_USER_ID

    async def get_customer_id(self, reload: bool = False) -> str:
        """
        Stripe customer id bound to the user, "" when there is none.

        :param reload: read the binding from UserStore even if it was resolved before
        """
        if self.is_guest or (self.customer_id and not reload):
            return self.customer_id

        binding = await self.user_store.get_bound_customer_id(self.user_id)
        if isinstance(binding, Mapping):
            customer_id = binding.get("customer_id") or ""
            if customer_id:
                self.log.info(
                    "[get_customer_id] migrating legacy customer binding.",
                    customer_id=customer_id,
                )
                await self.user_store.set_bound_customer_id(self.user_id, customer_id)
        else:
            customer_id = binding or ""

        self.customer_id = customer_id
        return customer_id

    async def ensure_customer_id(
        self, fallback_email: str = "", create_args: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        Return the bound stripe customer id, creating the customer on first use.

        :param fallback_email: email of a guest customer, e.g. the submitted billing email
        :param create_args: stripe customer fields overriding the defaults
        :return: stripe customer id
        """
        if fallback_email:
            self.fallback_email = fallback_email

        customer_id = await self.get_customer_id()
        if customer_id:
            return customer_id

        if self.is_guest:
            return await self.create_customer(
                create_args=create_args, fallback_email=fallback_email
            )

        return await self._create_under_lock(
            recreate=False, fallback_email=fallback_email, create_args=create_args
        )

    async def create_customer(
        self, create_args: Optional[Mapping[str, Any]] = None, fallback_email: str = ""
    ) -> str:
        """
        Create a new stripe customer and bind it to the user.

        :param create_args: stripe customer fields overriding the defaults
        :param fallback_email: email of a guest customer
        :return: id of the created customer
        """
        args = await self._default_create_args(fallback_email or self.fallback_email)
        if create_args:
            args.update(create_args)

        self.log.info("[create_customer] started.")
        try:
            response = await self.gateway.create_customer(args)
        except GatewayError as e:
            self.log.exception(
                "[create_customer] error while creating stripe customer",
                error_type=e.error_type,
            )
            raise RemoteError(
                CustomerErrorCode.CUSTOMER_CREATE_STRIPE_ERROR,
                payload=e.payload,
                message=e.message,
            ) from e

        customer_id = response.get("id") or ""
        if not customer_id:
            self.log.error("[create_customer] stripe returned no customer id")
            raise ValidationError(CustomerErrorCode.CUSTOMER_CREATE_INVALID_RESPONSE)

        self.customer_id = customer_id
        await self.clear_cache()
        self.customer_data = response

        if not self.is_guest:
            await self.user_store.set_bound_customer_id(self.user_id, customer_id)

        self.log.info("[create_customer] completed.", customer_id=customer_id)
        await self._publish(CustomerCreated(customer_id=customer_id, user_id=self.user_id))
        return customer_id

    async def add_source(self, source_id: str, retry: bool = True) -> str:
        """
        Attach a legacy source (card token, sources api object) to the customer.

        :param source_id: stripe token or source id
        :param retry: recreate the customer and retry once if stripe lost it
        :return: id of the attached source
        """
        customer_id = await self.ensure_customer_id()
        self.log.info("[add_source] started.", customer_id=customer_id)

        try:
            response = await self.gateway.attach_source(customer_id, source_id)
        except GatewayError as e:
            if retry and e.is_no_such_customer:
                self.log.warning(
                    "[add_source] stripe customer is gone, recreating.",
                    customer_id=customer_id,
                )
                await self._create_under_lock(recreate=True)
                return await self.add_source(source_id, retry=False)
            self.log.warning(
                "[add_source] error while attaching source",
                customer_id=customer_id,
                error_type=e.error_type,
                error_message=e.message,
            )
            raise RemoteError(
                CustomerErrorCode.SOURCE_ATTACH_STRIPE_ERROR,
                payload=e.payload,
                message=e.message,
            ) from e

        attached_id = response.get("id") or ""
        if not attached_id:
            raise ValidationError(CustomerErrorCode.SOURCE_ATTACH_INVALID_RESPONSE)

        if not self.is_guest:
            token = build_source_token(self.user_id, response)
            if token:
                await self.token_store.save(token)

        await self.clear_cache()
        await self._publish(
            SourceAdded(
                customer_id=customer_id,
                user_id=self.user_id,
                source_id=attached_id,
                kind=classify_source(response),
            )
        )
        return attached_id

    async def add_payment_method(
        self, payment_method: Mapping[str, Any], retry: bool = True
    ) -> Dict[str, Any]:
        """
        Attach a payment method to the customer unless it is attached already.

        :param payment_method: stripe payment method object
        :param retry: recreate the customer and retry once if stripe lost it
        :return: the attached payment method
        """
        customer_id = await self.ensure_customer_id()
        self.log.info(
            "[add_payment_method] started.",
            customer_id=customer_id,
            payment_method_id=payment_method.get("id"),
        )

        result = dict(payment_method)
        if payment_method.get("customer") != customer_id:
            try:
                result = await self.gateway.attach_payment_method(
                    customer_id, payment_method["id"]
                )
            except GatewayError as e:
                if retry and e.is_no_such_customer:
                    self.log.warning(
                        "[add_payment_method] stripe customer is gone, recreating.",
                        customer_id=customer_id,
                    )
                    await self._create_under_lock(recreate=True)
                    return await self.add_payment_method(payment_method, retry=False)
                self.log.warning(
                    "[add_payment_method] error while attaching payment method",
                    customer_id=customer_id,
                    error_type=e.error_type,
                    error_message=e.message,
                )
                raise RemoteError(
                    CustomerErrorCode.PAYMENT_METHOD_ATTACH_STRIPE_ERROR,
                    payload=e.payload,
                    message=e.message,
                ) from e

            if not result.get("id"):
                raise ValidationError(
                    CustomerErrorCode.PAYMENT_METHOD_ATTACH_INVALID_RESPONSE
                )

        if not self.is_guest:
            token = build_payment_method_token(self.user_id, result)
            if token:
                await self.token_store.save(token)

        await self.clear_cache()
        await self._publish(
            PaymentMethodAdded(
                customer_id=customer_id,
                user_id=self.user_id,
                payment_method_id=result["id"],
            )
        )
        return result

    async def list_sources(self) -> List[PaymentSource]:
        """
        Legacy sources followed by card payment methods of the customer.

        Best effort: an empty list is returned when stripe fails.
        """
        customer_id = await self.get_customer_id()
        if not customer_id:
            return []

        cache_key = sources_cache_key(customer_id)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return [PaymentSource.model_validate(source) for source in cached]

        try:
            sources = await self.gateway.list_sources(customer_id, limit=self.page_size)
            payment_methods = await self.gateway.list_payment_methods(
                customer_id, type="card", limit=self.page_size
            )
        except GatewayError as e:
            self.log.warning(
                "[list_sources] error while listing sources",
                customer_id=customer_id,
                error_type=e.error_type,
                error_message=e.message,
            )
            return []

        merged = [PaymentSource.from_gateway(source) for source in sources]
        merged.extend(PaymentSource.from_gateway(pm) for pm in payment_methods)

        await self.cache.set(
            cache_key, [source.model_dump(mode="json") for source in merged]
        )
        return merged

    async def delete_source(self, source_id: str) -> bool:
        customer_id = await self.get_customer_id()
        if not customer_id:
            return False

        deleted = True
        try:
            await self.gateway.delete_source(customer_id, source_id)
        except GatewayError as e:
            self.log.warning(
                "[delete_source] error while deleting source",
                customer_id=customer_id,
                source_id=source_id,
                error_message=e.message,
            )
            deleted = False

        # remote state is unknown after a failed call as well
        await self.clear_cache()

        if deleted:
            await self._publish(
                SourceDeleted(
                    customer_id=customer_id, user_id=self.user_id, source_id=source_id
                )
            )
        return deleted

    async def set_default_source(self, source_id: str) -> bool:
        """
        Set the legacy default_source of the customer.

        Payment methods are not supported, invoice_settings.default_payment_method is left untouched.
        """
        customer_id = await self.get_customer_id()

        updated = True
        try:
            await self.gateway.update_customer(
                customer_id, {"default_source": source_id}
            )
        except GatewayError as e:
            self.log.warning(
                "[set_default_source] error while updating customer",
                customer_id=customer_id,
                source_id=source_id,
                error_message=e.message,
            )
            updated = False

        await self.clear_cache()

        if updated:
            await self._publish(
                DefaultSourceSet(
                    customer_id=customer_id, user_id=self.user_id, source_id=source_id
                )
            )
        return updated

    async def retrieve_customer(self) -> Dict[str, Any]:
        """
        Full stripe customer snapshot, {} when there is no customer.
        """
        customer_id = await self.get_customer_id()
        if not customer_id:
            return {}
        if self.customer_data:
            return self.customer_data

        cache_key = customer_cache_key(customer_id)
        cached = await self.cache.get(cache_key)
        if cached:
            self.customer_data = cached
            return cached

        try:
            customer_data = await self.gateway.retrieve_customer(customer_id)
        except GatewayError as e:
            self.log.exception(
                "[retrieve_customer] error while retrieving stripe customer",
                customer_id=customer_id,
            )
            raise RemoteError(
                CustomerErrorCode.CUSTOMER_RETRIEVE_STRIPE_ERROR,
                payload=e.payload,
                message=e.message,
            ) from e

        self.customer_data = customer_data
        await self.cache.set(cache_key, customer_data)
        return customer_data

    async def clear_cache(self, customer_id: Optional[str] = None):
        """
        Drop cached source listing and customer snapshot.

        :param customer_id: defaults to the bound customer
        """
        self.customer_data = None
        customer_id = customer_id or self.customer_id
        if not customer_id:
            return
        await self.cache.delete(sources_cache_key(customer_id))
        await self.cache.delete(customer_cache_key(customer_id))

    async def _create_under_lock(
        self,
        recreate: bool,
        fallback_email: str = "",
        create_args: Optional[Mapping[str, Any]] = None,
    ) -> str:
        if self.is_guest:
            # nothing persisted, nothing to race on
            if recreate:
                await self.clear_cache()
                self.customer_id = ""
            return await self.create_customer(
                create_args=create_args, fallback_email=fallback_email
            )

        stale_customer_id = self.customer_id
        try:
            async with self.creation_lock.lock(self.user_id):
                # step 1: adopt a customer bound by a concurrent request
                bound_customer_id = await self.get_customer_id(reload=True)
                if bound_customer_id and bound_customer_id != stale_customer_id:
                    self.log.info(
                        "[create_customer] adopting concurrently created customer.",
                        customer_id=bound_customer_id,
                    )
                    return bound_customer_id

                # step 2: drop the binding of a customer stripe no longer knows
                if recreate:
                    if bound_customer_id:
                        await self.user_store.clear_bound_customer_id(self.user_id)
                    await self.clear_cache(stale_customer_id)
                    self.customer_id = ""

                # step 3: create and bind
                customer_id = await self.create_customer(
                    create_args=create_args, fallback_email=fallback_email
                )
        except PaymentLockAcquireError as e:
            raise CustomerCreationLockError() from e
        except PaymentLockReleaseError as e:
            if not self.customer_id:
                # creation failed inside the lock, surface that failure
                raise _customer_error_context(e) or CustomerCreationLockError()
            # the customer is created and bound, the lock merely expired first
            self.log.warning(
                "[create_customer] creation lock expired before release.",
                customer_id=self.customer_id,
            )
            customer_id = self.customer_id
        return customer_id

    async def _default_create_args(self, fallback_email: str) -> Dict[str, Any]:
        if self.is_guest:
            args: Dict[str, Any] = {"email": fallback_email, "description": ""}
        else:
            first_name = await self._profile_field("billing_first_name", "first_name")
            last_name = await self._profile_field("billing_last_name", "last_name")
            login = await self.user_store.get_profile_field(self.user_id, "login")
            args = {
                "email": await self.user_store.get_profile_field(self.user_id, "email"),
                "description": f"Name: {first_name} {last_name} Username: {login}",
            }

        metadata: Dict[str, str] = {}
        if self.metadata_provider:
            metadata.update(self.metadata_provider(self.user_id))
        args["metadata"] = metadata
        return args

    async def _profile_field(self, name: str, fallback_name: str) -> str:
        value = await self.user_store.get_profile_field(self.user_id, name)
        if not value:
            value = await self.user_store.get_profile_field(self.user_id, fallback_name)
        return value or ""

    async def _publish(self, event: CustomerEvent):
        try:
            await self.event_sink.publish(event)
        except Exception:
            # sink failures are only logged
            self.log.exception(
                "[publish] event sink failed", event_name=type(event).__name__
            )
