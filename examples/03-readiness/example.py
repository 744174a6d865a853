import asyncio
import os

import kubeaccess

DEPLOYMENT = 'nginx'


async def main():
    info = kubeaccess.ConnectionInfo(
        server=os.environ.get('K8S_SERVER', 'https://localhost:6443'),
        token=os.environ.get('K8S_TOKEN'),
        insecure=True,
    )
    async with kubeaccess.Cluster(info) as cluster:
        deployments = cluster.v1.deployments
        await deployments.scale('default', DEPLOYMENT, 3)
        await deployments.restart('default', DEPLOYMENT)
        try:
            deployment = await deployments.wait_until_ready('default', DEPLOYMENT, timeout=120)
        except kubeaccess.DeadlineExceededError:
            print("The deployment did not roll out in time.")
        else:
            print(f"Ready: {deployment.status.ready_replicas} replica(s).")


if __name__ == '__main__':
    kubeaccess.configure(verbose=True, log_prefix=True)
    asyncio.run(main())
