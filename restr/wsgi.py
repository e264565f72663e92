"""

    restr.wsgi -- serving router as WSGI application
    ================================================

    Thin transport adapter based on WebOb: it turns request into arguments of
    :meth:`restr.router.Router.handle` and its result into JSON response.

"""

import logging

from webob import Request, Response

from restr.exc import ValidationError

__all__ = ('Application',)

log = logging.getLogger(__name__)

class Application(object):
    """ WSGI application which dispatches requests with ``router``

    :param router:
        :class:`restr.router.Router` object
    """

    def __init__(self, router):
        self.router = router

    def params(self, request):
        """ Return query string and body params of ``request``"""
        query = request.GET.mixed()
        if not request.body:
            return query, None
        if request.content_type == 'application/json' \
                or request.content_type.endswith('+json'):
            try:
                return query, request.json_body
            except ValueError as e:
                raise ValidationError('malformed JSON body: %s' % e)
        return query, request.POST.mixed()

    def __call__(self, environ, start_response):
        request = Request(environ)
        try:
            query, body = self.params(request)
        except ValidationError as e:
            result = self.router.render_error(e)
        else:
            result = self.router.handle(
                request.method, request.path_info, query, body)
        log.debug('%s %s %d', request.method, request.path_info, result.status)
        return self.make_response(result)(environ, start_response)

    def make_response(self, result):
        response = Response(status=result.status,
            content_type='application/json', charset='UTF-8')
        if result.body is not None and result.status != 204:
            response.json_body = result.body
        else:
            del response.content_type
        return response
